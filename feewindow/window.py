"""Bounded window of the most recently ingested blocks."""

from collections import deque
from typing import Deque, List, Optional

from .models import Block


class BlockWindow:
    """Keeps the last ``max_blocks`` blocks in arrival order."""

    def __init__(self, max_blocks: int):
        """
        Initialize block window.

        Args:
            max_blocks: Capacity in blocks (at least 1)
        """
        if max_blocks < 1:
            raise ValueError(f"max_blocks must be >= 1, got {max_blocks}")
        self.max_blocks = max_blocks
        self._blocks: Deque[Block] = deque()

    def push(self, block: Block) -> Optional[Block]:
        """
        Append a block, evicting the oldest one if over capacity.

        Returns:
            The evicted block, if any
        """
        self._blocks.append(block)
        if len(self._blocks) > self.max_blocks:
            return self._blocks.popleft()
        return None

    def contents(self) -> List[Block]:
        return list(self._blocks)

    def __len__(self) -> int:
        return len(self._blocks)
