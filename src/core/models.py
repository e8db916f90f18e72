"""
Boundary layer data model(s).

Read-only projections of a Room handed from the domain to the Service (and onwards to the API layer).
The Room itself stays the single mutable truth; internal bookkeeping (payment references, addresses, locks)
never ends up in here.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class SeatModel:
    seat_index: int
    display_name: str
    color: str
    paid: bool


@dataclass(frozen=True)
class LastMoveModel:
    from_square: str
    to_square: str
    piece: str


@dataclass(frozen=True)
class ReactionModel:
    symbol: str
    display_name: str
    timestamp: int


@dataclass(frozen=True)
class RoomModel:
    """Snapshot of a room, clock values included as of the moment it was taken."""

    code: str
    entry_fee: Decimal
    status: str
    board: list[list[str]]
    fen: str
    current_turn: str
    last_move: Optional[LastMoveModel]
    winner: Optional[int]
    finish_reason: Optional[str]
    white_time_ms: int
    black_time_ms: int
    players: tuple[SeatModel, ...]
    spectator_count: int
    reactions: tuple[ReactionModel, ...]
    confirmed_payments: int
    payout_reference: Optional[str]

    @property
    def timeout(self) -> bool:
        return self.finish_reason == "timeout"


@dataclass(frozen=True)
class PayoutOrder:
    """Everything needed to settle a finished room, captured while the room was locked."""

    room_code: str
    winner_seat: int
    recipient: Optional[str]
    entry_fee: Decimal


@dataclass(frozen=True)
class PayoutRecord:
    room_code: str
    winner_seat: int
    recipient: Optional[str]
    amount_minor: int
    succeeded: bool
    reference: Optional[str]
    error: Optional[str]
