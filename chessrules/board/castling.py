from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from .material import Color
from .square import FILE_C, FILE_D, FILE_F, FILE_G, bit, between, square


class CastleSide(str, Enum):
    KINGSIDE = "kingside"
    QUEENSIDE = "queenside"


KINGSIDE, QUEENSIDE = CastleSide.KINGSIDE, CastleSide.QUEENSIDE

# (king destination file, rook destination file); identical for every back rank
_DESTINATIONS = {KINGSIDE: (FILE_G, FILE_F), QUEENSIDE: (FILE_C, FILE_D)}

SquareAttacked = Callable[[int, int], bool]


@dataclass(frozen=True)
class CastlingRights:
    """Castling rights of one color, keyed by original king and rook files.

    The files come from the back rank the game started with, so the same
    model covers standard chess and Chess960. A right exists exactly when
    its rook file is set; rights are only ever removed.
    """

    color: Color
    king_file: Optional[int] = None
    kingside: Optional[int] = None
    queenside: Optional[int] = None

    @classmethod
    def full(cls, color: Color, king_file: int, queenside: int, kingside: int) -> "CastlingRights":
        return cls(color, king_file, kingside=kingside, queenside=queenside)

    @classmethod
    def none(cls, color: Color) -> "CastlingRights":
        return cls(color)

    @property
    def rank(self) -> int:
        return 0 if self.color == Color.WHITE else 7

    @property
    def any(self) -> bool:
        return self.kingside is not None or self.queenside is not None

    def has(self, side: CastleSide) -> bool:
        return self.rook_file(side) is not None

    def rook_file(self, side: CastleSide) -> Optional[int]:
        return self.kingside if side == KINGSIDE else self.queenside

    @property
    def king_square(self) -> int:
        if self.king_file is None:
            raise ValueError("no castling rights held")
        return square(self.king_file, self.rank)

    def rook_square(self, side: CastleSide) -> int:
        f = self.rook_file(side)
        if f is None:
            raise ValueError(f"no {side.value} castling right")
        return square(f, self.rank)

    def king_destination(self, side: CastleSide) -> int:
        return square(_DESTINATIONS[side][0], self.rank)

    def rook_destination(self, side: CastleSide) -> int:
        return square(_DESTINATIONS[side][1], self.rank)

    def transit_mask(self, side: CastleSide) -> int:
        """King start, destination and every square between them."""
        ks, kd = self.king_square, self.king_destination(side)
        return between(ks, kd) | bit(ks) | bit(kd)

    def clearance_mask(self, side: CastleSide) -> int:
        """Squares that must be empty apart from the castling king and rook."""
        ks, kd = self.king_square, self.king_destination(side)
        rs, rd = self.rook_square(side), self.rook_destination(side)
        lanes = between(ks, kd) | bit(kd) | between(rs, rd) | bit(rd)
        return lanes & ~(bit(ks) | bit(rs))

    def revoke(self, sq: int) -> "CastlingRights":
        """Drop every right tied to `sq` (a king or rook leaving or captured there)."""
        if not self.any or sq >> 3 != self.rank:
            return self
        f = sq & 7
        if f == self.king_file:
            return self.clear()
        if f == self.kingside:
            return replace(self, kingside=None)._normalized()
        if f == self.queenside:
            return replace(self, queenside=None)._normalized()
        return self

    def clear(self) -> "CastlingRights":
        return CastlingRights(self.color)

    def _normalized(self) -> "CastlingRights":
        # rights without any rook collapse to the empty value so keys compare equal
        return self if self.any else CastlingRights(self.color)

    def can_castle(self, side: CastleSide, occupied: int, is_attacked: SquareAttacked) -> bool:
        """Return True if castling on `side` is possible.

        Args:
            occupied: Occupancy of the current position.
            is_attacked: ``is_attacked(sq, occupied)`` reports whether the
                opponent attacks ``sq`` given that occupancy.
        """
        if not self.has(side):
            return False
        if occupied & self.clearance_mask(side):
            return False
        ks, kd = self.king_square, self.king_destination(side)
        rs, rd = self.rook_square(side), self.rook_destination(side)
        transit = self.transit_mask(side) & ~bit(kd)
        while transit:
            low = transit & -transit
            sq = low.bit_length() - 1
            if is_attacked(sq, occupied):
                return False
            transit ^= low
        # the castling rook may have been shielding the destination
        after = (occupied & ~(bit(ks) | bit(rs))) | bit(kd) | bit(rd)
        return not is_attacked(kd, after)
