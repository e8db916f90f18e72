"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    WAITING_PLAYERS = "waiting_players"
    WAITING_PAYMENTS = "waiting_payments"
    PLAYING = "playing"
    FINISHED = "finished"


# Status only ever moves forward through this order
STATUS_ORDER: tuple[Status, ...] = (
    Status.WAITING_PLAYERS,
    Status.WAITING_PAYMENTS,
    Status.PLAYING,
    Status.FINISHED,
)


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class FinishReason(StrEnum):
    KING_CAPTURED = "king_captured"
    TIMEOUT = "timeout"
    FORCED = "forced"


# Seat 0 always plays white, seat 1 always plays black
SEAT_COLORS: tuple[Color, Color] = (Color.WHITE, Color.BLACK)
