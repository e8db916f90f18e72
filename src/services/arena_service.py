"""Orchestration of communication from API router to the rooms, the payment rail and persistence (and the reverse direction)."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from src.api.models import (
    ConfigResponse,
    CreateRoomRequest,
    DisplayNameRequest,
    DisplayNameResponse,
    EndGameRequest,
    EndGameResponse,
    HealthResponse,
    JoinRoomRequest,
    LastMoveResponse,
    MoveRequest,
    MoveResponse,
    PaymentResponse,
    PaymentStatusResponse,
    PayoutRecordResponse,
    ReactionResponse,
    ReactRequest,
    RoomResponse,
    SeatResponse,
    SpectateRequest,
    StateResponse,
    VerifyPaymentRequest,
)
from src.arena.clock import TimeSource, now_ms
from src.arena.room import MAX_SEATS, Room
from src.arena.square import Square
from src.collaborators.ledger import LedgerClient, RpcLedgerClient
from src.collaborators.names import DisplayNameDirectory, validate_display_name
from src.core.config import Settings
from src.core.exceptions import LedgerNotConfiguredError
from src.core.models import LastMoveModel, PayoutOrder, RoomModel, SeatModel
from src.db.database import make_session_factory
from src.db.repository import PayoutRepository
from src.db.sql_repository import SQLPayoutRepository
from src.services.payment_gate import PaymentGate
from src.services.payout import PayoutTrigger
from src.services.registry import RoomRegistry

logger = logging.getLogger(__name__)

DEFAULT_SPECTATOR_NAME = "Spectator"


class ArenaService:
    """Orchestration of layers for the match rooms."""

    def __init__(
        self,
        settings: Settings,
        registry: RoomRegistry,
        payment_gate: PaymentGate,
        payout: PayoutTrigger,
        names: DisplayNameDirectory,
        repository: PayoutRepository,
        time_source: TimeSource = now_ms,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.payment_gate = payment_gate
        self.payout = payout
        self.names = names
        self.repo = repository
        self._now = time_source

    # -- API routes logic ---
    def create_room(self, request: CreateRoomRequest) -> RoomResponse:
        """First player opens a room and takes the white seat."""
        if not self.settings.wallet_address:
            raise LedgerNotConfiguredError("Backend wallet not configured.")

        creator_name = self._resolve_name(
            request.creator_address, request.creator_name, None
        )
        room = self.registry.create(
            request.entry_fee,
            request.creator_address,
            creator_name,
            starting_time_ms=self.settings.starting_time_ms,
        )
        with self._room(room.code) as locked:
            return self._room_response(locked.to_model())

    def join_room(self, code: str, request: JoinRoomRequest) -> RoomResponse:
        """Second player requested to join a room."""
        name = self._resolve_name(request.player_address, request.player_name, None)
        with self._room(code) as room:
            seat = room.join(request.player_address, name)
            logger.info("Player joined %s on seat %s", room.code, seat.seat_index)
            return self._room_response(room.to_model())

    def spectate(self, code: str, request: SpectateRequest) -> RoomResponse:
        name = self._resolve_name(
            request.address, request.display_name, DEFAULT_SPECTATOR_NAME
        )
        with self._room(code) as room:
            room.add_spectator(request.address, name)
            return self._room_response(self._snapshot(room))

    def react(self, code: str, request: ReactRequest) -> StateResponse:
        name = self.names.lookup(request.address, DEFAULT_SPECTATOR_NAME)
        with self._room(code) as room:
            name = room.spectators.get(request.address, name)
            room.react(request.symbol, name, self._now())
            return self._state_response(self._snapshot(room))

    def get_room(self, code: str) -> RoomResponse:
        """Full view of a room, clocks advanced to now."""
        with self._room(code) as room:
            return self._room_response(self._snapshot(room))

    def get_state(self, code: str) -> StateResponse:
        """
        Lightweight state.
        ----
        Used in the "polling" loop by the frontend, so it is called a lot.
        """
        with self._room(code) as room:
            return self._state_response(self._snapshot(room))

    def get_payments(self, code: str) -> PaymentStatusResponse:
        with self._room(code) as room:
            model = self._snapshot(room)
        return PaymentStatusResponse(
            status=model.status,
            confirmed_payments=model.confirmed_payments,
            required_payments=MAX_SEATS,
            can_start_game=model.confirmed_payments >= MAX_SEATS,
            players=[self._seat_response(seat) for seat in model.players],
        )

    def confirm_payment(self, request: VerifyPaymentRequest) -> PaymentResponse:
        """A player claims to have paid the entry fee: verify it and mark the seat paid."""
        room = self.registry.lookup(request.room_code)
        self.payment_gate.confirm_payment(room, request.reference, request.payer_address)
        with self._room(room.code) as locked:
            model = locked.to_model()
        message = (
            "Game starting!"
            if model.confirmed_payments >= MAX_SEATS
            else "Waiting for opponent payment"
        )
        return PaymentResponse(room=self._room_response(model), message=message)

    def make_move(self, code: str, request: MoveRequest) -> MoveResponse:
        """Make a move attempt."""
        from_square = Square.from_algebraic(request.from_square)
        to_square = Square.from_algebraic(request.to_square)
        with self._room(code) as room:
            outcome = room.make_move(
                request.seat_index, from_square, to_square, self._now()
            )
            model = room.to_model()

        return MoveResponse(
            accepted=outcome.accepted,
            game_over=outcome.game_over,
            winner=outcome.winner,
            timeout=outcome.timeout,
            status=model.status,
            board=model.board,
            current_turn=model.current_turn,
            last_move=self._last_move_response(model.last_move),
            white_time_ms=model.white_time_ms,
            black_time_ms=model.black_time_ms,
        )

    def force_end(self, code: str, request: EndGameRequest) -> EndGameResponse:
        """Administrative end of a game (testing / operations)."""
        with self._room(code) as room:
            room.force_end(request.winner_seat, self._now())
            entry_fee = room.entry_fee

        # payout ran when the room lock was released; read back its reference
        with self._room(code) as room:
            model = room.to_model()
        winner = next(
            (seat for seat in model.players if seat.seat_index == request.winner_seat),
            None,
        )
        return EndGameResponse(
            winner=request.winner_seat,
            winner_name=winner.display_name if winner else None,
            payout=self.payout.payout_amount(entry_fee),
            payout_reference=model.payout_reference,
        )

    def set_display_name(
        self, address: str, request: DisplayNameRequest
    ) -> DisplayNameResponse:
        name = self.names.register(address, request.name)
        return DisplayNameResponse(address=address, name=name)

    def config(self) -> ConfigResponse:
        return ConfigResponse(
            wallet_address=self.settings.wallet_address,
            token_mint=self.settings.token_mint,
            commission_rate=self.settings.commission_rate,
            starting_time_ms=self.settings.starting_time_ms,
        )

    def health(self) -> HealthResponse:
        return HealthResponse(
            status="ok",
            wallet_address=self.settings.wallet_address or "NOT CONFIGURED",
            active_rooms=len(self.registry),
        )

    def list_payouts(self, room_code: Optional[str] = None) -> list[PayoutRecordResponse]:
        return [
            PayoutRecordResponse(
                room_code=record.room_code,
                winner_seat=record.winner_seat,
                recipient=record.recipient,
                amount_minor=record.amount_minor,
                succeeded=record.succeeded,
                reference=record.reference,
                error=record.error,
            )
            for record in self.repo.list_payouts(room_code)
        ]

    # -- Internal helpers --
    @contextmanager
    def _room(self, code: str) -> Iterator[Room]:
        """
        Hold the room's lock for the duration of the block.

        Whatever happens inside (including errors), a room that just got decided hands out its payout
        order before the lock is released, and the payout itself runs outside the lock.
        """
        room = self.registry.lookup(code)
        order = None
        try:
            with room.lock:
                try:
                    yield room
                finally:
                    order = room.claim_payout()
        finally:
            if order is not None:
                self._settle(room, order)

    def _settle(self, room: Room, order: PayoutOrder) -> None:
        reference = self.payout.settle(order)
        if reference is None:
            return
        with room.lock:
            room.record_payout(reference)

    def _snapshot(self, room: Room) -> RoomModel:
        """Every read advances the clock first; a flag falling here decides the game."""
        room.advance_clock(self._now())
        return room.to_model()

    def _resolve_name(
        self, address: Optional[str], name: Optional[str], default: Optional[str]
    ) -> Optional[str]:
        """Register a supplied name, otherwise fall back on the directory (or the default)."""
        if name and address:
            return self.names.register(address, name)
        if name:
            return validate_display_name(name)
        return self.names.lookup(address, default)

    def _room_response(self, model: RoomModel) -> RoomResponse:
        """Convert info in RoomModel to a RoomResponse"""
        return RoomResponse(
            code=model.code,
            entry_fee=model.entry_fee,
            status=model.status,
            wallet_address=self.settings.wallet_address,
            confirmed_payments=model.confirmed_payments,
            required_payments=MAX_SEATS,
            can_start_game=model.confirmed_payments >= MAX_SEATS,
            prize_pool=model.entry_fee * model.confirmed_payments,
            current_turn=model.current_turn,
            board=model.board,
            fen=model.fen,
            last_move=self._last_move_response(model.last_move),
            game_over=model.winner is not None,
            winner=model.winner,
            timeout=model.timeout,
            finish_reason=model.finish_reason,
            white_time_ms=model.white_time_ms,
            black_time_ms=model.black_time_ms,
            players=[self._seat_response(seat) for seat in model.players],
            spectator_count=model.spectator_count,
            payout_reference=model.payout_reference,
        )

    def _state_response(self, model: RoomModel) -> StateResponse:
        limit = self.settings.state_reactions
        recent = model.reactions[-limit:] if limit > 0 else ()
        return StateResponse(
            status=model.status,
            board=model.board,
            current_turn=model.current_turn,
            last_move=self._last_move_response(model.last_move),
            game_over=model.winner is not None,
            winner=model.winner,
            timeout=model.timeout,
            white_time_ms=model.white_time_ms,
            black_time_ms=model.black_time_ms,
            reactions=[
                ReactionResponse(
                    symbol=r.symbol, display_name=r.display_name, timestamp=r.timestamp
                )
                for r in recent
            ],
            spectator_count=model.spectator_count,
        )

    def _seat_response(self, seat: SeatModel) -> SeatResponse:
        return SeatResponse(
            seat_index=seat.seat_index,
            name=seat.display_name,
            color=seat.color,
            paid=seat.paid,
        )

    def _last_move_response(
        self, last_move: Optional[LastMoveModel]
    ) -> Optional[LastMoveResponse]:
        if last_move is None:
            return None
        return LastMoveResponse(
            from_square=last_move.from_square,
            to_square=last_move.to_square,
            piece=last_move.piece,
        )


def build_arena_service(
    settings: Settings,
    ledger: Optional[LedgerClient] = None,
    repository: Optional[PayoutRepository] = None,
    time_source: TimeSource = now_ms,
) -> ArenaService:
    """Wire up the process-wide state: an empty registry, an empty set of consumed payments."""
    ledger = ledger or RpcLedgerClient(
        settings.rpc_url,
        settings.payout_url,
        settings.token_mint,
        timeout_sec=settings.ledger_timeout_sec,
    )
    repository = repository or SQLPayoutRepository(
        make_session_factory(settings.database_url)
    )
    names = DisplayNameDirectory()
    return ArenaService(
        settings=settings,
        registry=RoomRegistry(),
        payment_gate=PaymentGate(
            ledger,
            names,
            settings.wallet_address,
            settings.minor_units,
            time_source=time_source,
        ),
        payout=PayoutTrigger(
            ledger, repository, settings.commission_rate, settings.minor_units
        ),
        names=names,
        repository=repository,
        time_source=time_source,
    )
