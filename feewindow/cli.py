"""Command-line interface for feewindow."""

import sys
import json
import argparse
import threading
import uvicorn
from .config import Config
from .rpc import RPCClient, ChainClient
from .window import BlockWindow
from .store import StatsStore
from .collector import Collector, TICK_ERROR
from .block_log import BlockLogWriter
from .api import create_app
from .logging import setup_logging, get_logger

logger = get_logger(__name__)


def build_collector(config: Config) -> Collector:
    """Wire the chain client, window, store and block log from config."""
    rpc_client = RPCClient(config.rpc_url, timeout=config.rpc_timeout_secs)
    chain_client = ChainClient(rpc_client, commitment=config.rpc_commitment)
    block_log = BlockLogWriter(config.block_log_path) if config.log_blocks else None
    return Collector(
        chain_client,
        BlockWindow(config.max_blocks),
        StatsStore(),
        block_log=block_log,
        print_stats=config.print_stats,
    )


def main():
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Poll a Solana node, keep fee statistics over the last N blocks "
                    "and serve them over HTTP."
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config.yaml (default: search for config.yaml)"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one tick, print the snapshot and exit"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Pretty-print JSON output (for --once mode)"
    )

    args = parser.parse_args()

    try:
        config = Config(args.config)
    except FileNotFoundError as e:
        # Initialize basic logging before setup_logging for error reporting
        import logging
        logging.basicConfig(level=logging.ERROR, format='[%(levelname)s] %(message)s')
        logger.error(f"Config file not found: {e}")
        sys.exit(1)
    except Exception as e:
        import logging
        logging.basicConfig(level=logging.ERROR, format='[%(levelname)s] %(message)s')
        logger.error(f"Error loading config: {e}")
        sys.exit(1)

    setup_logging(config)
    collector = build_collector(config)

    if args.once:
        outcome = collector.tick()
        output = {
            "outcome": outcome,
            "height": collector.last_seen_height,
            "stats": collector.store.current().to_dict(),
        }
        print(json.dumps(output, indent=2 if args.verbose else None))
        if outcome == TICK_ERROR:
            sys.exit(1)
        return

    stop_event = threading.Event()

    def run_collector():
        """Run the poll loop in a separate thread."""
        try:
            collector.run_continuous(config.tick_secs, stop_event)
        except Exception as e:
            logger.error(f"Collector thread error: {e}", exc_info=True)

    collector_thread = threading.Thread(target=run_collector, name="collector", daemon=True)
    collector_thread.start()

    app = create_app(
        collector.store,
        config.access_token,
        rate_limit=config.rate_limit,
        rate_window_secs=config.rate_window_secs,
    )
    logger.info(f"Server running on port {config.server_port}.")
    try:
        # log_config=None keeps the handlers installed by setup_logging
        uvicorn.run(app, host=config.server_host, port=config.server_port, log_config=None)
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Shutting down...")
        stop_event.set()
        collector_thread.join(timeout=config.rpc_timeout_secs)


if __name__ == "__main__":
    main()
