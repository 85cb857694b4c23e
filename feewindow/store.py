"""Holder for the most recently published statistics snapshot."""

import threading
from typing import Optional

from .stats import StatsSnapshot


class StatsStore:
    """Publishes snapshots by reference swap so readers never see partial updates."""

    def __init__(self, initial: Optional[StatsSnapshot] = None):
        self._lock = threading.Lock()
        self._snapshot = initial or StatsSnapshot.empty()

    def publish(self, snapshot: StatsSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot

    def current(self) -> StatsSnapshot:
        with self._lock:
            return self._snapshot
