"""Block and transaction records kept in the rolling window."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Transaction:
    """Fee metrics of a single transaction."""

    fee_paid: int
    compute_units_consumed: int

    @classmethod
    def from_rpc(cls, tx: Dict[str, Any]) -> Optional["Transaction"]:
        """
        Build a transaction from a getBlock entry.

        Args:
            tx: Transaction entry with a ``meta`` object

        Returns:
            Transaction, or None when the node did not include metadata
        """
        meta = tx.get("meta")
        if not meta:
            return None
        return cls(
            fee_paid=int(meta.get("fee") or 0),
            # Older nodes omit computeUnitsConsumed
            compute_units_consumed=int(meta.get("computeUnitsConsumed") or 0),
        )


@dataclass(frozen=True)
class Block:
    """A fetched block reduced to the metrics the aggregator needs."""

    height: int
    transactions: Tuple[Transaction, ...]
    raw: Optional[Dict[str, Any]] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_rpc(cls, height: int, raw: Dict[str, Any]) -> "Block":
        """
        Parse a getBlock result.

        Args:
            height: Slot the block was fetched at
            raw: JSON result of getBlock with full transaction details

        Returns:
            Block keeping the raw payload for the block log
        """
        txs = []
        for entry in raw.get("transactions") or []:
            tx = Transaction.from_rpc(entry)
            if tx is not None:
                txs.append(tx)
        return cls(height=height, transactions=tuple(txs), raw=raw)

    @property
    def tx_count(self) -> int:
        return len(self.transactions)
