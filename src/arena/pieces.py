"""Defines the pieces standing on the board. An empty square simply holds no Piece."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Self

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color


class PieceType(Enum):
    PAWN = auto()
    KNIGHT = auto()
    BISHOP = auto()
    ROOK = auto()
    QUEEN = auto()
    KING = auto()


FEN_TO_PIECE: dict[str, PieceType] = {
    "p": PieceType.PAWN,
    "n": PieceType.KNIGHT,
    "b": PieceType.BISHOP,
    "r": PieceType.ROOK,
    "q": PieceType.QUEEN,
    "k": PieceType.KING,
}

PIECE_TO_FEN: dict[PieceType, str] = {value: key for key, value in FEN_TO_PIECE.items()}


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color

    @classmethod
    def from_fen(cls, character: str) -> Self:
        # lower case: Black pieces, upper case: White pieces
        if character.lower() not in FEN_TO_PIECE:
            raise InvalidRequestError(f"Unknown piece code: {character!r}")
        color = Color.WHITE if character.isupper() else Color.BLACK
        return cls(FEN_TO_PIECE[character.lower()], color)

    def to_fen(self) -> str:
        code = PIECE_TO_FEN[self.type]
        return code.upper() if self.color == Color.WHITE else code

    @property
    def is_king(self) -> bool:
        return self.type == PieceType.KING
