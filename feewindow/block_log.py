"""Append-only log of raw block payloads.

Each ingested block is written pretty-printed and followed by a blank
line, so the file can be inspected by hand or split on empty lines.
"""

import json
from pathlib import Path
from typing import Any, Dict

from .logging import get_logger

logger = get_logger(__name__)


class BlockLogWriter:
    """Append raw getBlock results to a single text file."""

    def __init__(self, path: str) -> None:
        self.path = Path(path)
        if self.path.parent != Path("."):
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, raw_block: Dict[str, Any]) -> bool:
        """Append one block payload.

        Write failures are logged and reported through the return value;
        they never propagate into the ingestion path.
        """
        try:
            entry = json.dumps(raw_block, indent=2)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(entry + "\n\n")
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to append block to %s: %s", self.path, exc, exc_info=True)
            return False
        logger.debug("Block data has been added to %s", self.path)
        return True
