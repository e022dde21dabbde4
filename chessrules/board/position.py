from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Mapping, NamedTuple, Optional, Sequence, Tuple

from .backrank import STANDARD_BACKRANK_ID, BackRank
from .castling import KINGSIDE, QUEENSIDE, CastlingRights
from .errors import IllegalMove, InvalidPosition
from .material import (
    BISHOP,
    BLACK,
    KING,
    KNIGHT,
    PAWN,
    PIECE_TO_CHAR,
    QUEEN,
    ROOK,
    WHITE,
    Color,
    Material,
    material_index,
)
from .moves import LegalMove, MoveKind, PreMove
from .square import (
    FILE_G,
    KING_ATTACKS,
    KNIGHT_ATTACKS,
    LIGHT_SQUARES,
    PAWN_ATTACKS,
    RANK_MASKS,
    bishop_attacks,
    bit,
    file_of,
    lsb,
    popcount,
    rook_attacks,
    square,
    square_to_str,
)


@dataclass(frozen=True, order=True)
class MoveId:
    """Ply counter; even values are White's turn, odd values Black's."""

    value: int = 0

    @classmethod
    def of(cls, move_number: int, turn: Color) -> "MoveId":
        return cls((move_number - 1) * 2 + int(turn))

    @property
    def turn(self) -> Color:
        return Color(self.value & 1)

    @property
    def move_number(self) -> int:
        return self.value // 2 + 1

    @property
    def at_start(self) -> bool:
        return self.value == 0

    def next(self) -> "MoveId":
        return MoveId(self.value + 1)

    def prev(self) -> "MoveId":
        if self.value == 0:
            raise ValueError("no move before the start")
        return MoveId(self.value - 1)


class PositionKey(NamedTuple):
    """Repetition identity of a position: everything except the clocks."""

    bb: Tuple[int, ...]
    turn: Color
    castling: Tuple[CastlingRights, CastlingRights]
    ep_square: Optional[int]


class MatingMaterial(Enum):
    SUFFICIENT = "sufficient"
    LONE_KING = "lone_king"
    KNIGHT = "knight"
    LIGHT_BISHOP = "light_bishop"
    DARK_BISHOP = "dark_bishop"


def attackers(bb: Sequence[int], sq: int, by: Color, occupied: int) -> int:
    """Mask of `by` pieces attacking `sq` given piece masks and occupancy."""
    base = by * 6
    diagonal = bb[base + BISHOP] | bb[base + QUEEN]
    straight = bb[base + ROOK] | bb[base + QUEEN]
    found = PAWN_ATTACKS[by.other][sq] & bb[base + PAWN]
    found |= KNIGHT_ATTACKS[sq] & bb[base + KNIGHT]
    found |= KING_ATTACKS[sq] & bb[base + KING]
    if diagonal:
        found |= bishop_attacks(sq, occupied) & diagonal
    if straight:
        found |= rook_attacks(sq, occupied) & straight
    return found


@dataclass(frozen=True)
class Position:
    """Immutable chess position.

    Notes:
    - Squares are 0..63 (a1=0 .. h8=63), rank-major from white's perspective.
    - ``bb`` holds twelve disjoint material masks indexed WP..BK.
    - Applying a move returns a new Position; nothing here mutates.
    """

    bb: Tuple[int, ...]
    move_id: MoveId
    castling: Tuple[CastlingRights, CastlingRights]
    ep_square: Optional[int] = None
    halfmove_clock: int = 0

    @classmethod
    def initial(cls, backrank_id: int = STANDARD_BACKRANK_ID) -> "Position":
        """Create the starting position for a back rank id (518 is standard)."""
        backrank = BackRank.lookup(backrank_id)
        bb = [0] * 12
        for f, piece in enumerate(backrank.pieces):
            bb[material_index(WHITE, piece)] |= bit(square(f, 0))
            bb[material_index(BLACK, piece)] |= bit(square(f, 7))
        bb[material_index(WHITE, PAWN)] = RANK_MASKS[1]
        bb[material_index(BLACK, PAWN)] = RANK_MASKS[6]
        q_rook, k_rook = backrank.rooks
        castling = (
            CastlingRights.full(WHITE, backrank.king, q_rook, k_rook),
            CastlingRights.full(BLACK, backrank.king, q_rook, k_rook),
        )
        return cls(tuple(bb), MoveId(), castling)

    @classmethod
    def build(
        cls,
        placement: Mapping[int, Material],
        *,
        turn: Color = WHITE,
        castling: Optional[Tuple[CastlingRights, CastlingRights]] = None,
        ep_square: Optional[int] = None,
        halfmove_clock: int = 0,
        fullmove_number: int = 1,
    ) -> "Position":
        """Create a validated position from a square -> material mapping.

        Raises:
            InvalidPosition: If the placement or state cannot occur in a game.
        """
        bb = [0] * 12
        for sq, material in placement.items():
            if not 0 <= sq < 64:
                raise InvalidPosition(f"invalid square index: {sq}")
            bb[material.index] |= bit(sq)
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise InvalidPosition("invalid move counters")
        if castling is None:
            castling = (CastlingRights.none(WHITE), CastlingRights.none(BLACK))
        position = cls(
            tuple(bb),
            MoveId.of(fullmove_number, turn),
            castling,
            ep_square,
            halfmove_clock,
        )
        position.validate()
        return position

    # --- Queries ---
    @property
    def turn(self) -> Color:
        return self.move_id.turn

    @property
    def fullmove_number(self) -> int:
        return self.move_id.move_number

    @cached_property
    def occupied(self) -> int:
        occ = 0
        for b in self.bb:
            occ |= b
        return occ

    @cached_property
    def by_color(self) -> Tuple[int, int]:
        white = 0
        black = 0
        for i in range(6):
            white |= self.bb[i]
            black |= self.bb[6 + i]
        return white, black

    def pieces(self, color: Color, piece: Optional[int] = None) -> int:
        if piece is None:
            return self.by_color[color]
        return self.bb[material_index(color, piece)]

    def index_at(self, sq: int) -> Optional[int]:
        """Material index on `sq`, or None when empty."""
        m = bit(sq)
        if not self.occupied & m:
            return None
        for idx, b in enumerate(self.bb):
            if b & m:
                return idx
        return None

    def piece_at(self, sq: int) -> Optional[Material]:
        idx = self.index_at(sq)
        return Material.from_index(idx) if idx is not None else None

    def king_square(self, color: Color) -> int:
        kings = self.bb[material_index(color, KING)]
        if not kings:
            raise InvalidPosition(f"no {color.name.lower()} king on the board")
        return lsb(kings)

    def castling_rights(self, color: Color) -> CastlingRights:
        return self.castling[color]

    def attackers_to(self, sq: int, by: Color, occupied: Optional[int] = None) -> int:
        return attackers(self.bb, sq, by, self.occupied if occupied is None else occupied)

    def is_check(self) -> bool:
        return bool(self.attackers_to(self.king_square(self.turn), self.turn.other))

    def key(self) -> PositionKey:
        return PositionKey(self.bb, self.turn, self.castling, self.ep_square)

    def mating_material(self, color: Color) -> MatingMaterial:
        base = color * 6
        if self.bb[base + PAWN] or self.bb[base + ROOK] or self.bb[base + QUEEN]:
            return MatingMaterial.SUFFICIENT
        knights = self.bb[base + KNIGHT]
        bishops = self.bb[base + BISHOP]
        minors = popcount(knights) + popcount(bishops)
        if minors == 0:
            return MatingMaterial.LONE_KING
        if minors > 1:
            return MatingMaterial.SUFFICIENT
        if knights:
            return MatingMaterial.KNIGHT
        if bishops & LIGHT_SQUARES:
            return MatingMaterial.LIGHT_BISHOP
        return MatingMaterial.DARK_BISHOP

    # --- Transitions ---
    def apply(self, move: LegalMove) -> "Position":
        """Return the position after `move`, which must be legal here.

        Handles castling rights revocation, en passant target, clocks and
        the move id.
        """
        us = self.turn
        them = us.other
        frm, to = move.from_sq, move.to_sq
        moved = self.index_at(frm)
        if moved is None or moved // 6 != us:
            raise IllegalMove(f"no {us.name.lower()} piece on {square_to_str(frm)}", move=move)

        bb = list(self.bb)
        ours, theirs = self.castling[us], self.castling[them]
        ep_square: Optional[int] = None
        halfmove = self.halfmove_clock + 1

        if move.rook_from is not None:
            side = KINGSIDE if file_of(to) == FILE_G else QUEENSIDE
            rook = material_index(us, ROOK)
            bb[moved] &= ~bit(frm)
            bb[rook] &= ~bit(move.rook_from)
            bb[moved] |= bit(to)
            bb[rook] |= bit(ours.rook_destination(side))
            ours = ours.clear()
        else:
            captured_sq = to
            if move.kind == MoveKind.EN_PASSANT:
                captured_sq = to - 8 if us == WHITE else to + 8
            captured = self.index_at(captured_sq)
            if captured is not None:
                bb[captured] &= ~bit(captured_sq)
                halfmove = 0
            bb[moved] &= ~bit(frm)
            placed = moved if move.promotion is None else material_index(us, move.promotion)
            bb[placed] |= bit(to)
            if moved % 6 == PAWN:
                halfmove = 0
            if move.kind == MoveKind.DOUBLE_PUSH:
                ep_square = (frm + to) // 2
            ours = ours.revoke(frm)
            theirs = theirs.revoke(to)

        castling = (ours, theirs) if us == WHITE else (theirs, ours)
        return Position(tuple(bb), self.move_id.next(), castling, ep_square, halfmove)

    def preview(self, pre_move: PreMove) -> "Position":
        """Show a pre-move of the side not to move; the turn does not change."""
        mover = self.turn.other
        frm, to = pre_move.from_sq, pre_move.to_sq
        moved = self.index_at(frm)
        if moved is None or moved // 6 != mover:
            raise IllegalMove("pre-move does not start on one of our pieces", move=pre_move)
        bb = list(self.bb)
        rights = self.castling[mover]
        if pre_move.rook_from is not None:
            side = KINGSIDE if file_of(to) == FILE_G else QUEENSIDE
            rook = material_index(mover, ROOK)
            bb[moved] &= ~bit(frm)
            bb[rook] &= ~bit(pre_move.rook_from)
            rook_to = rights.rook_destination(side)
            for i in range(12):
                bb[i] &= ~(bit(to) | bit(rook_to))
            bb[moved] |= bit(to)
            bb[rook] |= bit(rook_to)
            rights = rights.clear()
        else:
            for i in range(12):
                bb[i] &= ~bit(to)
            bb[moved] &= ~bit(frm)
            placed = moved if pre_move.promotion is None else material_index(mover, pre_move.promotion)
            bb[placed] |= bit(to)
            rights = rights.revoke(frm)
        castling = (rights, self.castling[BLACK]) if mover == WHITE else (self.castling[WHITE], rights)
        return Position(tuple(bb), self.move_id, castling, None, self.halfmove_clock)

    # --- Validation ---
    def validate(self) -> None:
        """Raise InvalidPosition unless this position could occur in a game."""
        if len(self.bb) != 12:
            raise InvalidPosition("expected twelve material masks")
        if sum(popcount(b) for b in self.bb) != popcount(self.occupied):
            raise InvalidPosition("two pieces share a square")
        for color in (WHITE, BLACK):
            if popcount(self.bb[material_index(color, KING)]) != 1:
                raise InvalidPosition(f"{color.name.lower()} must have exactly one king")
        pawns = self.bb[material_index(WHITE, PAWN)] | self.bb[material_index(BLACK, PAWN)]
        if pawns & (RANK_MASKS[0] | RANK_MASKS[7]):
            raise InvalidPosition("pawns cannot stand on the first or last rank")
        for color in (WHITE, BLACK):
            self._validate_castling(color)
        self._validate_en_passant()
        them = self.turn.other
        if self.attackers_to(self.king_square(them), self.turn):
            raise InvalidPosition("the side not to move is in check")
        if self.halfmove_clock < 0:
            raise InvalidPosition("invalid halfmove clock")

    def _validate_castling(self, color: Color) -> None:
        rights = self.castling[color]
        if rights.color != color:
            raise InvalidPosition("castling rights stored for the wrong color")
        if not rights.any:
            return
        if rights.king_file is None or self.index_at(rights.king_square) != material_index(color, KING):
            raise InvalidPosition("castling rights without a king on its original square")
        for side in (KINGSIDE, QUEENSIDE):
            f = rights.rook_file(side)
            if f is None:
                continue
            if self.index_at(rights.rook_square(side)) != material_index(color, ROOK):
                raise InvalidPosition("castling rights without a rook on its original square")
            if (side == KINGSIDE) != (f > rights.king_file):
                raise InvalidPosition("castling rook on the wrong side of the king")

    def _validate_en_passant(self) -> None:
        ep = self.ep_square
        if ep is None:
            return
        if not 0 <= ep < 64:
            raise InvalidPosition("invalid en passant square")
        us = self.turn
        step = -8 if us == WHITE else 8
        rank_ok = (ep >> 3) == (5 if us == WHITE else 2)
        pushed = ep + step
        origin = ep - step
        if (
            not rank_ok
            or self.occupied & (bit(ep) | bit(origin))
            or self.index_at(pushed) != material_index(us.other, PAWN)
        ):
            raise InvalidPosition("en passant square does not follow a double pawn push")

    def __str__(self) -> str:
        rows = []
        for rank in range(7, -1, -1):
            row = []
            for f in range(8):
                idx = self.index_at(square(f, rank))
                row.append(PIECE_TO_CHAR[idx] if idx is not None else ".")
            rows.append(" ".join(row))
        return "\n".join(rows)

