"""Requests and Response models"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from src.arena.square import Square
from src.core.exceptions import InvalidRequestError


# --- REQUEST MODELS ---
class CreateRoomRequest(BaseModel):
    entry_fee: Decimal
    creator_address: Optional[str] = None
    creator_name: Optional[str] = None

    @field_validator("entry_fee")
    @classmethod
    def validate_entry_fee(cls, value: Decimal) -> Decimal:
        if not value.is_finite() or value <= 0:
            raise InvalidRequestError(f"Entry fee must be a positive amount, got {value}.")
        return value


class JoinRoomRequest(BaseModel):
    player_address: Optional[str] = None
    player_name: Optional[str] = None


class SpectateRequest(BaseModel):
    address: str
    display_name: Optional[str] = None


class ReactRequest(BaseModel):
    address: str
    symbol: str


class VerifyPaymentRequest(BaseModel):
    room_code: str
    reference: str
    payer_address: str

    @field_validator("reference", "payer_address")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("Payment reference and payer address are required.")
        return value.strip()


class MoveRequest(BaseModel):
    seat_index: int
    from_square: str
    to_square: str

    @field_validator("from_square", "to_square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        # raises InvalidSquareError for anything that is not a1..h8
        return Square.from_algebraic(value.strip()).to_algebraic()


class EndGameRequest(BaseModel):
    winner_seat: int


class DisplayNameRequest(BaseModel):
    name: str


# --- RESPONSE MODELS ---
class SeatResponse(BaseModel):
    seat_index: int
    name: str
    color: str
    paid: bool


class LastMoveResponse(BaseModel):
    from_square: str
    to_square: str
    piece: str


class ReactionResponse(BaseModel):
    symbol: str
    display_name: str
    timestamp: int


class RoomResponse(BaseModel):
    code: str
    entry_fee: Decimal
    status: str
    wallet_address: str
    confirmed_payments: int
    required_payments: int
    can_start_game: bool
    prize_pool: Decimal
    current_turn: str
    board: list[list[str]]
    fen: str
    last_move: Optional[LastMoveResponse]
    game_over: bool
    winner: Optional[int]
    timeout: bool
    finish_reason: Optional[str]
    white_time_ms: int
    black_time_ms: int
    players: list[SeatResponse]
    spectator_count: int
    payout_reference: Optional[str]


class StateResponse(BaseModel):
    """Lightweight view for frequent polling."""

    status: str
    board: list[list[str]]
    current_turn: str
    last_move: Optional[LastMoveResponse]
    game_over: bool
    winner: Optional[int]
    timeout: bool
    white_time_ms: int
    black_time_ms: int
    reactions: list[ReactionResponse]
    spectator_count: int


class PaymentStatusResponse(BaseModel):
    status: str
    confirmed_payments: int
    required_payments: int
    can_start_game: bool
    players: list[SeatResponse]


class PaymentResponse(BaseModel):
    room: RoomResponse
    message: str


class MoveResponse(BaseModel):
    accepted: bool
    game_over: bool
    winner: Optional[int]
    timeout: bool
    status: str
    board: list[list[str]]
    current_turn: str
    last_move: Optional[LastMoveResponse]
    white_time_ms: int
    black_time_ms: int


class EndGameResponse(BaseModel):
    winner: int
    winner_name: Optional[str]
    payout: Decimal
    payout_reference: Optional[str]


class ConfigResponse(BaseModel):
    wallet_address: str
    token_mint: str
    commission_rate: Decimal
    starting_time_ms: int


class HealthResponse(BaseModel):
    status: str
    wallet_address: str
    active_rooms: int


class PayoutRecordResponse(BaseModel):
    room_code: str
    winner_seat: int
    recipient: Optional[str]
    amount_minor: int
    succeeded: bool
    reference: Optional[str]
    error: Optional[str]


class DisplayNameResponse(BaseModel):
    address: str
    name: str
