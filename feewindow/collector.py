"""Poll loop that ingests new blocks and republishes window statistics."""

import threading
from typing import Dict, Optional

from .block_log import BlockLogWriter
from .logging import get_logger
from .models import Block
from .rpc import ChainClient
from .stats import aggregate, format_report
from .store import StatsStore
from .window import BlockWindow

logger = get_logger(__name__)

# Outcomes of a single tick
TICK_UNCHANGED = "unchanged"
TICK_INGESTED = "ingested"
TICK_EMPTY = "empty"
TICK_ERROR = "error"


class Collector:
    """Owns the last-seen height, the block window and snapshot publication.

    Only one thread may drive ``tick``; the HTTP layer reads through the
    store.
    """

    def __init__(
        self,
        chain_client: ChainClient,
        window: BlockWindow,
        store: StatsStore,
        block_log: Optional[BlockLogWriter] = None,
        print_stats: bool = False,
    ):
        """
        Initialize collector.

        Args:
            chain_client: Adapter for getSlot/getBlock
            window: Block window to push accepted blocks into
            store: Store receiving a new snapshot after each accepted block
            block_log: Optional writer for raw block payloads
            print_stats: Log a terminal report after each accepted block
        """
        self.chain_client = chain_client
        self.window = window
        self.store = store
        self.block_log = block_log
        self.print_stats = print_stats
        self._last_seen_height: Optional[int] = None

        self.metrics: Dict[str, int] = {
            "ticks": 0,
            "blocks_ingested": 0,
            "empty_blocks": 0,
            "unchanged_ticks": 0,
            "errors": 0,
        }

    @property
    def last_seen_height(self) -> Optional[int]:
        return self._last_seen_height

    def tick(self) -> str:
        """
        Run one polling cycle.

        The cursor advances only when the node answered both calls; any
        failure leaves it in place so the same height is retried next tick.

        Returns:
            One of TICK_UNCHANGED, TICK_INGESTED, TICK_EMPTY, TICK_ERROR
        """
        self.metrics["ticks"] += 1
        try:
            height = self.chain_client.current_height()

            if height == self._last_seen_height:
                self.metrics["unchanged_ticks"] += 1
                logger.debug(f"Slot {height} has not changed. No re-download.")
                return TICK_UNCHANGED

            block = self.chain_client.fetch_block(height)

            if block is None or not block.transactions:
                self.metrics["empty_blocks"] += 1
                logger.info(f"Slot {height} has no block or no transactions, skipping")
                self._last_seen_height = height
                return TICK_EMPTY

            self._ingest(block)
            self._last_seen_height = height
            return TICK_INGESTED

        except Exception as e:
            self.metrics["errors"] += 1
            logger.error(f"Error in retrieving or processing the block contents: {e}", exc_info=True)
            return TICK_ERROR

    def _ingest(self, block: Block) -> None:
        if self.block_log is not None and block.raw is not None:
            self.block_log.append(block.raw)

        evicted = self.window.push(block)
        snapshot = aggregate(self.window.contents())
        self.store.publish(snapshot)
        self.metrics["blocks_ingested"] += 1

        logger.info(
            f"Ingested block {block.height}: {block.tx_count} transactions "
            f"| window={len(self.window)}/{self.window.max_blocks} "
            f"avg_fee={snapshot.average_fee:.2f} "
            f"fee_per_cu={snapshot.average_fee_per_compute_unit_scaled} uL"
        )
        if evicted is not None:
            logger.debug(f"Evicted block {evicted.height} from window")
        if self.print_stats:
            logger.info("\n" + format_report(snapshot))

    def run_continuous(self, tick_secs: float, stop_event: Optional[threading.Event] = None) -> None:
        """
        Run the polling loop until ``stop_event`` is set.

        The next tick is scheduled only after the current one finished,
        error path included, so cycles never overlap.

        Args:
            tick_secs: Seconds to wait between the end of one tick and the next
            stop_event: Event that ends the loop (default: run forever)
        """
        stop_event = stop_event or threading.Event()
        logger.info(
            f"Starting collector: tick={tick_secs}s window={self.window.max_blocks} blocks"
        )
        while not stop_event.is_set():
            self.tick()
            stop_event.wait(tick_secs)
        logger.info(f"Collector stopped after {self.metrics['ticks']} ticks")
