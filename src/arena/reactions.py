"""Audience reactions: a small FIFO ring, completely decoupled from the game itself."""

from collections import deque
from dataclasses import dataclass

from src.core.exceptions import InvalidSymbolError

ALLOWED_SYMBOLS: frozenset[str] = frozenset(
    {"👏", "🔥", "😮", "😂", "😱", "👑", "💀", "♟️"}
)
REACTION_CAPACITY = 20


@dataclass(frozen=True)
class Reaction:
    symbol: str
    display_name: str
    timestamp: int


class ReactionFeed:
    """Keeps the most recent reactions only; the oldest one is dropped first once full."""

    def __init__(self) -> None:
        self._reactions: deque[Reaction] = deque(maxlen=REACTION_CAPACITY)

    def __len__(self) -> int:
        return len(self._reactions)

    def add(self, symbol: str, display_name: str, timestamp: int) -> Reaction:
        if symbol not in ALLOWED_SYMBOLS:
            raise InvalidSymbolError(
                f"Reaction {symbol!r} is not allowed. Pick one from {' '.join(sorted(ALLOWED_SYMBOLS))}"
            )
        reaction = Reaction(symbol, display_name, timestamp)
        self._reactions.append(reaction)
        return reaction

    def recent(self, limit: int | None = None) -> list[Reaction]:
        """Oldest first. `limit` keeps only the newest entries."""
        reactions = list(self._reactions)
        if limit is None:
            return reactions
        return reactions[-limit:] if limit > 0 else []
