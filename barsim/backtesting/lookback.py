"""
Lookback window: fixed-capacity FIFO of the most recent bars.
"""

from __future__ import annotations
from collections import deque
from typing import Any, Deque, Tuple

from barsim.core.errors import PreconditionError


class LookbackWindow:
    """
    Holds the last `capacity` bars, oldest first. Strategy callbacks only ever
    see `snapshot()`, a fresh tuple, so nothing they do can alter the buffer.
    """

    def __init__(self, capacity: int = 1):
        if capacity < 1:
            raise PreconditionError(f"Lookback period must be at least 1, got {capacity}")
        self.capacity = capacity
        self._bars: Deque[Any] = deque(maxlen=capacity)

    def push(self, bar: Any) -> None:
        self._bars.append(bar)

    @property
    def is_full(self) -> bool:
        return len(self._bars) >= self.capacity

    def snapshot(self) -> Tuple[Any, ...]:
        return tuple(self._bars)

    def __len__(self) -> int:
        return len(self._bars)
