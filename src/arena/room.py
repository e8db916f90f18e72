"""
The Room is the entrypoint into the domain layer for the service layer.

It owns everything about one match: seats, board, clock, spectators and reactions, and guards the
transitions waiting_players -> waiting_payments -> playing -> finished.
Every guard is checked before anything is mutated, so a rejected call leaves the room exactly as it was.

The Room does not lock itself: the service takes `room.lock` around every call.
"""

import logging
import threading
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Self

from src.arena.board import Board, apply_move
from src.arena.clock import GameClock
from src.arena.reactions import ReactionFeed
from src.arena.square import Square
from src.core.exceptions import (
    GameStateError,
    InvalidRequestError,
    NotAcceptingPaymentsError,
    NotYourPieceError,
    NotYourTurnError,
    NoUnpaidSeatError,
    RoomFullError,
)
from src.core.models import (
    LastMoveModel,
    PayoutOrder,
    ReactionModel,
    RoomModel,
    SeatModel,
)
from src.core.shared_types import (
    SEAT_COLORS,
    STATUS_ORDER,
    Color,
    FinishReason,
    Status,
)

logger = logging.getLogger(__name__)

MAX_SEATS = 2
DEFAULT_STARTING_TIME_MS = 10 * 60 * 1000


def default_seat_name(seat_index: int) -> str:
    return f"Player {seat_index + 1}"


@dataclass
class Seat:
    seat_index: int
    address: Optional[str]
    display_name: str
    paid: bool = False
    payment_reference: Optional[str] = None

    @property
    def color(self) -> Color:
        return SEAT_COLORS[self.seat_index]


@dataclass(frozen=True)
class LastMove:
    from_square: Square
    to_square: Square
    piece: str


@dataclass(frozen=True)
class MoveOutcome:
    """What happened to a move request. `accepted` is False when the clock decided the game first."""

    accepted: bool
    game_over: bool
    winner: Optional[int] = None
    timeout: bool = False


@dataclass
class Room:
    code: str
    entry_fee: Decimal
    board: Board
    clock: GameClock
    players: list[Seat]
    reactions: ReactionFeed
    status: Status = Status.WAITING_PLAYERS
    current_turn: Color = Color.WHITE
    last_move: Optional[LastMove] = None
    winner: Optional[int] = None
    finish_reason: Optional[FinishReason] = None
    spectators: dict[str, str] = field(default_factory=dict)
    confirmed_payments: int = 0
    payout_reference: Optional[str] = None
    _payout_claimed: bool = field(default=False, repr=False)
    lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    @classmethod
    def new(
        cls,
        code: str,
        entry_fee: Decimal,
        creator_address: Optional[str],
        creator_name: Optional[str] = None,
        starting_time_ms: int = DEFAULT_STARTING_TIME_MS,
    ) -> Self:
        """A fresh room: standard starting position, full clocks, the creator sitting on seat 0 (white)."""
        if entry_fee <= 0:
            raise InvalidRequestError(f"Entry fee must be positive, got {entry_fee}.")
        creator = Seat(0, creator_address, creator_name or default_seat_name(0))
        return cls(
            code=code,
            entry_fee=entry_fee,
            board=Board.initial(),
            clock=GameClock.with_budget(starting_time_ms),
            players=[creator],
            reactions=ReactionFeed(),
        )

    # --- LOBBY ---
    def join(self, address: Optional[str], display_name: Optional[str] = None) -> Seat:
        """The second player takes seat 1 (black)."""
        if len(self.players) >= MAX_SEATS:
            raise RoomFullError(f"Room {self.code} is full.")
        if self.status != Status.WAITING_PLAYERS:
            raise GameStateError(
                f"Cannot join room {self.code}. status: {self.status}"
            )
        seat_index = len(self.players)
        seat = Seat(seat_index, address, display_name or default_seat_name(seat_index))
        self.players.append(seat)
        self._change_status(Status.WAITING_PAYMENTS)
        return seat

    def add_spectator(self, address: str, display_name: str) -> bool:
        """Returns False when the address was already watching."""
        if address in self.spectators:
            return False
        self.spectators[address] = display_name
        return True

    def react(self, symbol: str, display_name: str, now: int) -> None:
        self.reactions.add(symbol, display_name, now)

    # --- PAYMENTS ---
    def next_unpaid_seat(self) -> Seat:
        """Guard for a payment confirmation: raises if this room cannot take a payment right now."""
        if self.status != Status.WAITING_PAYMENTS:
            raise NotAcceptingPaymentsError(
                f"Room {self.code} is not accepting payments. status: {self.status}"
            )
        unpaid = next((seat for seat in self.players if not seat.paid), None)
        if unpaid is None:
            raise NoUnpaidSeatError(f"All players in room {self.code} already paid.")
        return unpaid

    def confirm_payment(
        self, reference: str, payer_address: str, display_name: str, now: int
    ) -> Seat:
        """Mark the first unpaid seat as paid. The second confirmation starts the game and the clock."""
        seat = self.next_unpaid_seat()
        seat.paid = True
        seat.payment_reference = reference
        seat.address = payer_address
        seat.display_name = display_name
        self.confirmed_payments += 1

        if self.confirmed_payments == MAX_SEATS and len(self.players) == MAX_SEATS:
            self._change_status(Status.PLAYING)
            self.clock.start(now)
        return seat

    # --- PLAY ---
    def advance_clock(self, now: int) -> bool:
        """
        Charge the side to move for the time since the last anchor.

        Returns True only if the game got decided by time during this very call.
        """
        if self.status != Status.PLAYING or self.winner is not None:
            return False
        flagged = self.clock.advance(self.current_turn, now)
        if not flagged:
            return False

        # the side that ran out of time loses
        winner_seat = SEAT_COLORS.index(self.current_turn.opponent)
        self.finish(winner_seat, FinishReason.TIMEOUT)
        return True

    def make_move(
        self, seat_index: int, from_square: Square, to_square: Square, now: int
    ) -> MoveOutcome:
        """
        Attempt a move.
        -----

        1. advance the clock (may decide the game, in which case the move is not played)
        2. check status, turn, and ownership of the moving piece
        3. update the board and the last move, re-anchor the clock
        4. capturing a king wins the game on the spot, otherwise the turn passes
        """
        if self.advance_clock(now):
            return MoveOutcome(
                accepted=False, game_over=True, winner=self.winner, timeout=True
            )

        self._assert_in_progress()
        seat = self._seat(seat_index)
        if seat.color != self.current_turn:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {self.current_turn} to make a move first."
            )
        if from_square == to_square:
            raise InvalidRequestError("A move needs two different squares.")
        if self.board.owner(from_square) != seat.color:
            raise NotYourPieceError(
                f"The piece on {from_square.to_algebraic()} does not belong to {seat.color}."
            )

        captured_king = self.board.is_king_at(to_square)
        piece = self.board.piece(from_square)
        self.board = apply_move(self.board, from_square, to_square)
        self.last_move = LastMove(from_square, to_square, piece.to_fen())
        self.clock.start(now)
        logger.info(
            "Move in %s: %s %s -> %s",
            self.code,
            seat.color,
            from_square.to_algebraic(),
            to_square.to_algebraic(),
        )

        if captured_king:
            self.finish(seat_index, FinishReason.KING_CAPTURED)
            return MoveOutcome(accepted=True, game_over=True, winner=seat_index)

        self.current_turn = self.current_turn.opponent
        return MoveOutcome(accepted=True, game_over=False)

    def force_end(self, winner_seat: int, now: int) -> None:
        """Administrative escape hatch: decide the game without playing it out."""
        if winner_seat not in range(MAX_SEATS):
            raise InvalidRequestError(f"Invalid seat: {winner_seat}")
        self.advance_clock(now)
        self.finish(winner_seat, FinishReason.FORCED)

    def finish(self, winner_seat: int, reason: FinishReason) -> None:
        """The one and only way into `finished`. A decided game is never decided again."""
        if self.winner is not None:
            raise GameStateError(
                f"Game in room {self.code} is already decided. winner: seat {self.winner}"
            )
        self.winner = winner_seat
        self._change_status(Status.FINISHED)
        self.finish_reason = reason
        self.clock.stop()
        logger.info("Room %s finished: seat %s wins (%s)", self.code, winner_seat, reason)

    # --- SETTLEMENT ---
    def claim_payout(self) -> Optional[PayoutOrder]:
        """Hands out the payout order exactly once, and only for a finished room."""
        if self.winner is None or self._payout_claimed:
            return None
        self._payout_claimed = True
        winner = next(
            (seat for seat in self.players if seat.seat_index == self.winner), None
        )
        return PayoutOrder(
            room_code=self.code,
            winner_seat=self.winner,
            recipient=winner.address if winner else None,
            entry_fee=self.entry_fee,
        )

    def record_payout(self, reference: str) -> None:
        if self.payout_reference is not None:
            raise GameStateError(f"Room {self.code} already has a payout reference.")
        self.payout_reference = reference

    # --- PROJECTION ---
    def to_model(self) -> RoomModel:
        """Encode into the read-only format the Service layer uses"""
        return RoomModel(
            code=self.code,
            entry_fee=self.entry_fee,
            status=str(self.status),
            board=self.board.to_grid(),
            fen=self.board.to_fen(),
            current_turn=str(self.current_turn),
            last_move=(
                LastMoveModel(
                    self.last_move.from_square.to_algebraic(),
                    self.last_move.to_square.to_algebraic(),
                    self.last_move.piece,
                )
                if self.last_move
                else None
            ),
            winner=self.winner,
            finish_reason=str(self.finish_reason) if self.finish_reason else None,
            white_time_ms=self.clock.white_ms,
            black_time_ms=self.clock.black_ms,
            players=tuple(
                SeatModel(seat.seat_index, seat.display_name, str(seat.color), seat.paid)
                for seat in self.players
            ),
            spectator_count=len(self.spectators),
            reactions=tuple(
                ReactionModel(r.symbol, r.display_name, r.timestamp)
                for r in self.reactions.recent()
            ),
            confirmed_payments=self.confirmed_payments,
            payout_reference=self.payout_reference,
        )

    # -- PRIVATE HELPERS ---
    def _assert_in_progress(self) -> None:
        if self.status != Status.PLAYING or self.winner is not None:
            raise GameStateError(f"Game is not in progress. status: {self.status}")

    def _seat(self, seat_index: int) -> Seat:
        if seat_index not in range(len(self.players)):
            raise InvalidRequestError(f"Invalid seat: {seat_index}")
        return self.players[seat_index]

    def _change_status(self, new_status: Status) -> None:
        """Status only moves forward."""
        if STATUS_ORDER.index(new_status) <= STATUS_ORDER.index(self.status):
            raise GameStateError(
                f"Cannot go from {self.status} to {new_status} in room {self.code}."
            )
        self.status = new_status
