"""
Per-side countdown clock.

Nothing ticks in the background: the clock is advanced lazily whenever somebody reads or moves,
by charging the wall-clock time elapsed since the anchor to the side whose turn it is.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

from src.core.shared_types import Color

TimeSource = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class GameClock:
    white_ms: int
    black_ms: int
    anchor_ms: Optional[int] = None

    @classmethod
    def with_budget(cls, starting_time_ms: int) -> "GameClock":
        return cls(white_ms=starting_time_ms, black_ms=starting_time_ms)

    def remaining(self, color: Color) -> int:
        return self.white_ms if color == Color.WHITE else self.black_ms

    def start(self, now: int) -> None:
        self.anchor_ms = now

    def advance(self, turn: Color, now: int) -> bool:
        """
        Charge elapsed time to `turn` and move the anchor to `now`.

        Returns True if `turn` has run out of time. Calling again with the same `now` charges nothing.
        """
        if self.anchor_ms is None:
            return False
        elapsed = max(0, now - self.anchor_ms)
        left = max(0, self.remaining(turn) - elapsed)
        if turn == Color.WHITE:
            self.white_ms = left
        else:
            self.black_ms = left
        self.anchor_ms = now
        return left == 0

    def stop(self) -> None:
        """No more time is charged once the game is decided."""
        self.anchor_ms = None
