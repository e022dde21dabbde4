from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Color(IntEnum):
    WHITE = 0
    BLACK = 1

    @property
    def other(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def char(self) -> str:
        return "w" if self is Color.WHITE else "b"


class Piece(IntEnum):
    PAWN = 0
    KNIGHT = 1
    BISHOP = 2
    ROOK = 3
    QUEEN = 4
    KING = 5

    @property
    def char(self) -> str:
        return "pnbrqk"[self]


WHITE, BLACK = Color.WHITE, Color.BLACK
PAWN, KNIGHT, BISHOP, ROOK, QUEEN, KING = tuple(Piece)

# Material indices for the twelve piece masks of a position
WP, WN, WB, WR, WQ, WK, BP, BN, BB, BR, BQ, BK = range(12)
PIECE_TO_CHAR = {
    WP: "P",
    WN: "N",
    WB: "B",
    WR: "R",
    WQ: "Q",
    WK: "K",
    BP: "p",
    BN: "n",
    BB: "b",
    BR: "r",
    BQ: "q",
    BK: "k",
}
CHAR_TO_PIECE = {v: k for k, v in PIECE_TO_CHAR.items()}

PROMOTION_PIECES = (QUEEN, ROOK, BISHOP, KNIGHT)
PROMOTION_CHARS = {"q": QUEEN, "r": ROOK, "b": BISHOP, "n": KNIGHT}


def material_index(color: Color, piece: Piece) -> int:
    return color * 6 + piece


@dataclass(frozen=True)
class Material:
    """A piece of a specific color."""

    color: Color
    piece: Piece

    @classmethod
    def from_index(cls, idx: int) -> "Material":
        return cls(Color(idx // 6), Piece(idx % 6))

    @property
    def index(self) -> int:
        return material_index(self.color, self.piece)

    @property
    def char(self) -> str:
        return PIECE_TO_CHAR[self.index]
