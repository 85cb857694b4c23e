"""Fee and compute-unit statistics over the block window."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .constants import MICRO_LAMPORTS_PER_LAMPORT
from .models import Block


@dataclass(frozen=True)
class StatsSnapshot:
    """Aggregated statistics computed from one state of the window.

    Fees are in lamports. ``average_fee_per_compute_unit_scaled`` is the
    same ratio in micro-lamports, truncated toward zero.
    """

    computed_at: datetime
    block_count: int = 0
    total_transactions: int = 0
    average_fee: float = 0
    average_compute_units: float = 0
    average_fee_per_compute_unit: float = 0
    average_fee_per_compute_unit_scaled: int = 0
    min_fee: int = 0
    max_fee: int = 0
    min_compute_units: int = 0
    max_compute_units: int = 0

    @classmethod
    def empty(cls, computed_at: Optional[datetime] = None) -> "StatsSnapshot":
        return cls(computed_at=computed_at or datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Render the snapshot with the API's camelCase keys."""
        return {
            "computedAt": self.computed_at.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "blockCount": self.block_count,
            "totalTransactions": self.total_transactions,
            "averageFee": self.average_fee,
            "averageComputeUnits": self.average_compute_units,
            "averageFeePerComputeUnit": self.average_fee_per_compute_unit,
            "averageFeePerComputeUnitScaled": self.average_fee_per_compute_unit_scaled,
            "minFee": self.min_fee,
            "maxFee": self.max_fee,
            "minComputeUnits": self.min_compute_units,
            "maxComputeUnits": self.max_compute_units,
        }


def aggregate(blocks: Iterable[Block], now: Optional[datetime] = None) -> StatsSnapshot:
    """
    Recompute statistics over every transaction in the given blocks.

    Runs in full on each call; the window is small and bounded so no
    running sums are kept.

    Args:
        blocks: Window contents
        now: Timestamp to stamp the snapshot with (default: current UTC time)

    Returns:
        New snapshot; all numeric fields are 0 when there are no transactions
    """
    computed_at = now or datetime.now(timezone.utc)
    blocks = list(blocks)

    fees: List[int] = []
    compute_units: List[int] = []
    for block in blocks:
        for tx in block.transactions:
            fees.append(tx.fee_paid)
            compute_units.append(tx.compute_units_consumed)

    total = len(fees)
    if total == 0:
        return StatsSnapshot(computed_at=computed_at, block_count=len(blocks))

    total_fees = sum(fees)
    total_cu = sum(compute_units)

    fee_per_cu = 0.0
    fee_per_cu_scaled = 0
    if total_cu > 0:
        fee_per_cu = total_fees / total_cu
        # Integer arithmetic avoids float error at the truncation boundary
        fee_per_cu_scaled = (total_fees * MICRO_LAMPORTS_PER_LAMPORT) // total_cu

    return StatsSnapshot(
        computed_at=computed_at,
        block_count=len(blocks),
        total_transactions=total,
        average_fee=total_fees / total,
        average_compute_units=total_cu / total,
        average_fee_per_compute_unit=fee_per_cu,
        average_fee_per_compute_unit_scaled=fee_per_cu_scaled,
        min_fee=min(fees),
        max_fee=max(fees),
        min_compute_units=min(compute_units),
        max_compute_units=max(compute_units),
    )


def format_report(snapshot: StatsSnapshot) -> str:
    """Multi-line terminal summary of a snapshot."""
    lines = [
        f"Aggregated statistics for the last {snapshot.block_count} blocks:",
        f"Total number of transactions: {snapshot.total_transactions}",
        f"Average fees: {snapshot.average_fee:.2f} Lamports",
        f"Average Compute Units: {snapshot.average_compute_units:.2f}",
        (
            f"Average fees per Compute Unit: {snapshot.average_fee_per_compute_unit:.2f} Lamports / "
            f"{snapshot.average_fee_per_compute_unit_scaled} MicroLamports"
        ),
        f"Minimum fees: {snapshot.min_fee} Lamports",
        f"Maximum fees: {snapshot.max_fee} Lamports",
        f"Minimum Compute Units: {snapshot.min_compute_units}",
        f"Maximum Compute Units: {snapshot.max_compute_units}",
        "-------------------------------------------",
    ]
    return "\n".join(lines)
