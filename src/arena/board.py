"""
The board only knows where the pieces stand.

There is deliberately no legality checking here: a move is "piece exists and belongs to the mover",
and the Room enforces that before asking the board to move anything.
"""

from copy import deepcopy
from dataclasses import dataclass
from typing import Optional, Self

from src.arena.pieces import Piece
from src.arena.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import EmptySquareError
from src.core.shared_types import Color

STARTING_POSITION_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"

Cell = Optional[Piece]


@dataclass
class Board:
    position: dict[Square, Cell]

    @classmethod
    def initial(cls) -> Self:
        return cls.from_fen(STARTING_POSITION_FEN)

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board from the piece placement part of a FEN string.

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on the 8th rank, the first character is the a-file
        * ranks 6 through 3 have 8 consecutive empty squares
        * white pieces (capital letters) are on ranks 2 and 1
        """
        position: dict[Square, Cell] = {}
        for rank_idx, fen_one_rank in enumerate(fen_str.split("/")):
            # FEN string is read from top rank (8th) to bottom rank (1st)
            rank = BOARD_DIMENSIONS[1] - rank_idx
            file = 1
            for character in fen_one_rank:
                if character.isalpha():
                    position[Square(file, rank)] = Piece.from_fen(character)
                    file += 1
                else:
                    for _ in range(int(character)):
                        position[Square(file, rank)] = None
                        file += 1
        return cls(position)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(
            self._rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1], 0, -1)
        )

    def to_grid(self) -> list[list[str]]:
        """Rows of piece codes ('' for empty), top row is rank 8 and each row starts on the a-file."""
        return [
            [
                piece.to_fen() if (piece := self.piece(Square(file, rank))) else ""
                for file in range(1, BOARD_DIMENSIONS[0] + 1)
            ]
            for rank in range(BOARD_DIMENSIONS[1], 0, -1)
        ]

    def piece(self, square: Square) -> Cell:
        return self.position.get(square)

    def owner(self, square: Square) -> Color:
        """Color of the piece on the square. Asking about an empty square is the caller's mistake."""
        piece = self.piece(square)
        if piece is None:
            raise EmptySquareError(f"No piece on {square.to_algebraic()}.")
        return piece.color

    def is_king_at(self, square: Square) -> bool:
        piece = self.piece(square)
        return piece is not None and piece.is_king

    def move_piece(self, from_square: Square, to_square: Square) -> Cell:
        """Move in place and return whatever stood on the destination square."""
        moving = self.piece(from_square)
        if moving is None:
            raise EmptySquareError(f"No piece on {from_square.to_algebraic()}.")
        captured = self.piece(to_square)
        self.position[from_square] = None
        self.position[to_square] = moving
        return captured

    def copy(self) -> Self:
        return deepcopy(self)

    def _rank_to_fen(self, rank: int) -> str:
        fen_characters: list[str] = []
        empty_count = 0
        for file in range(1, BOARD_DIMENSIONS[0] + 1):
            piece = self.piece(Square(file, rank))
            if piece is None:
                empty_count += 1
                continue
            if empty_count > 0:
                fen_characters.append(str(empty_count))
                empty_count = 0
            fen_characters.append(piece.to_fen())

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)


def apply_move(board: Board, from_square: Square, to_square: Square) -> Board:
    """Pure variant of Board.move_piece: returns a new board, leaves the given one untouched."""
    new_board = board.copy()
    new_board.move_piece(from_square, to_square)
    return new_board
