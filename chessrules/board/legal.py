from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Union

from .castling import KINGSIDE, QUEENSIDE, CastleSide
from .errors import IllegalMove
from .material import BISHOP, KING, KNIGHT, PAWN, PROMOTION_PIECES, QUEEN, ROOK, WHITE, Color
from .moves import LegalMove, Move, MoveKind, PreMove
from .position import Position, attackers
from .square import (
    KING_ATTACKS,
    KNIGHT_ATTACKS,
    MASK64,
    PAWN_ATTACKS,
    RANK_MASKS,
    between,
    bishop_attacks,
    bit,
    iter_squares,
    lsb,
    popcount,
    queen_attacks,
    rook_attacks,
    square_to_str,
)


def attack_mask(bb, color: Color, occupied: int) -> int:
    """Union of every square attacked by `color` under `occupied`."""
    base = color * 6
    attacked = 0
    for sq in iter_squares(bb[base + PAWN]):
        attacked |= PAWN_ATTACKS[color][sq]
    for sq in iter_squares(bb[base + KNIGHT]):
        attacked |= KNIGHT_ATTACKS[sq]
    for sq in iter_squares(bb[base + BISHOP] | bb[base + QUEEN]):
        attacked |= bishop_attacks(sq, occupied)
    for sq in iter_squares(bb[base + ROOK] | bb[base + QUEEN]):
        attacked |= rook_attacks(sq, occupied)
    for sq in iter_squares(bb[base + KING]):
        attacked |= KING_ATTACKS[sq]
    return attacked


def _promotion_rank(color: Color) -> int:
    return RANK_MASKS[7] if color == WHITE else RANK_MASKS[0]


class MoveState:
    """Legal-move view of one position.

    Built once per position and never mutated; the move list is generated
    lazily on first use.

    Attributes:
        checkers: Mask of enemy pieces giving check.
        their_attacks: Squares the opponent attacks with our king lifted off
            the board, so the king cannot step back along a checking ray.
        pinned: Pinned square -> mask of squares it may still move to.
    """

    def __init__(self, position: Position) -> None:
        self.position = position
        self.us = position.turn
        self.them = self.us.other
        self.king = position.king_square(self.us)
        occ = position.occupied
        self.ours = position.pieces(self.us)
        self.theirs = position.pieces(self.them)
        self.checkers = position.attackers_to(self.king, self.them)
        self.their_attacks = attack_mask(position.bb, self.them, occ & ~bit(self.king))
        self.pinned = self._find_pins()
        self._moves: Optional[List[LegalMove]] = None

    # --- Derived state ---
    def _find_pins(self) -> Dict[int, int]:
        bb = self.position.bb
        base = self.them * 6
        diagonal = bb[base + BISHOP] | bb[base + QUEEN]
        straight = bb[base + ROOK] | bb[base + QUEEN]
        snipers = (bishop_attacks(self.king, 0) & diagonal) | (rook_attacks(self.king, 0) & straight)
        occ = self.position.occupied
        pins: Dict[int, int] = {}
        for sniper in iter_squares(snipers):
            ray = between(self.king, sniper)
            blockers = ray & occ
            if popcount(blockers) == 1 and blockers & self.ours:
                pins[lsb(blockers)] = ray | bit(sniper)
        return pins

    @property
    def in_check(self) -> bool:
        return bool(self.checkers)

    def is_attacked(self, sq: int, occupied: int) -> bool:
        return bool(attackers(self.position.bb, sq, self.them, occupied))

    # --- Move generation ---
    def legal_moves(self) -> List[LegalMove]:
        if self._moves is None:
            self._moves = list(self._generate())
        return self._moves

    def has_moves(self) -> bool:
        return bool(self.legal_moves())

    def legal_moves_from(self, from_sq: int) -> List[LegalMove]:
        return [m for m in self.legal_moves() if m.from_sq == from_sq]

    def destinations(self, from_sq: int) -> int:
        """Mask of squares a UI may offer for the piece on `from_sq`.

        Castling contributes both the king destination and the rook square.
        """
        mask = 0
        for m in self.legal_moves_from(from_sq):
            mask |= bit(m.to_sq)
            if m.rook_from is not None:
                mask |= bit(m.rook_from)
        return mask

    def _generate(self) -> Iterator[LegalMove]:
        king = self.king
        for to in iter_squares(KING_ATTACKS[king] & ~self.ours & ~self.their_attacks):
            yield LegalMove(king, to)
        if popcount(self.checkers) > 1:
            return

        target = ~self.ours & MASK64
        if self.checkers:
            target &= between(king, lsb(self.checkers)) | self.checkers
        else:
            yield from self._castles()

        bb = self.position.bb
        base = self.us * 6
        occ = self.position.occupied
        for piece, attacks in (
            (KNIGHT, lambda sq: KNIGHT_ATTACKS[sq]),
            (BISHOP, lambda sq: bishop_attacks(sq, occ)),
            (ROOK, lambda sq: rook_attacks(sq, occ)),
            (QUEEN, lambda sq: queen_attacks(sq, occ)),
        ):
            for sq in iter_squares(bb[base + piece]):
                dests = attacks(sq) & target & self.pinned.get(sq, MASK64)
                for to in iter_squares(dests):
                    yield LegalMove(sq, to)

        for sq in iter_squares(bb[base + PAWN]):
            yield from self._pawn_moves(sq, target)

    def _pawn_moves(self, sq: int, target: int) -> Iterator[LegalMove]:
        occ = self.position.occupied
        forward = 8 if self.us == WHITE else -8
        start_rank = 1 if self.us == WHITE else 6
        allowed = target & self.pinned.get(sq, MASK64)

        quiet = 0
        double = 0
        one = sq + forward
        if not occ & bit(one):
            quiet = bit(one)
            two = one + forward
            if sq >> 3 == start_rank and not occ & bit(two):
                double = bit(two)
        captures = PAWN_ATTACKS[self.us][sq] & self.theirs

        for to in iter_squares((quiet | captures) & allowed):
            if bit(to) & _promotion_rank(self.us):
                for promo in PROMOTION_PIECES:
                    yield LegalMove(sq, to, promo)
            else:
                yield LegalMove(sq, to)
        if double & allowed:
            yield LegalMove(sq, lsb(double), kind=MoveKind.DOUBLE_PUSH)

        ep = self.position.ep_square
        if ep is not None and PAWN_ATTACKS[self.us][sq] & bit(ep) and self._en_passant_is_safe(sq, ep):
            yield LegalMove(sq, ep, kind=MoveKind.EN_PASSANT)

    def _en_passant_is_safe(self, from_sq: int, ep: int) -> bool:
        # Both pawns leave the capture rank at once, so ordinary pin logic
        # misses a rook or queen on that rank; simulate the capture instead.
        captured = ep - 8 if self.us == WHITE else ep + 8
        bb = list(self.position.bb)
        bb[self.them * 6 + PAWN] &= ~bit(captured)
        occ = (self.position.occupied & ~(bit(from_sq) | bit(captured))) | bit(ep)
        return not attackers(bb, self.king, self.them, occ)

    def _castles(self) -> Iterator[LegalMove]:
        rights = self.position.castling[self.us]
        if not rights.any:
            return
        occ = self.position.occupied
        for side in (KINGSIDE, QUEENSIDE):
            if rights.can_castle(side, occ, self.is_attacked):
                yield LegalMove(
                    rights.king_square,
                    rights.king_destination(side),
                    kind=MoveKind.CASTLE,
                    rook_from=rights.rook_square(side),
                )

    # --- Input resolution ---
    def resolve(self, move: Union[Move, LegalMove, PreMove]) -> LegalMove:
        """Map raw input onto a legal move.

        Castling is accepted as king-to-rook-square, or as
        king-to-destination when that is not also an ordinary king move.
        A LegalMove or PreMove tagged as a castle matches by its rook square,
        so recorded games replay exactly.

        Raises:
            IllegalMove: If no legal move matches.
        """
        candidates = self.legal_moves_from(move.from_sq)
        shaped = isinstance(move, (LegalMove, PreMove))
        if isinstance(move, (LegalMove, PreMove)) and move.rook_from is not None:
            for m in candidates:
                if m.rook_from == move.rook_from:
                    return m
            raise IllegalMove(
                f"castle with the {square_to_str(move.rook_from)} rook is not legal",
                move=move,
            )
        for m in candidates:
            if not m.is_castle and m.to_sq == move.to_sq and m.promotion == move.promotion:
                return m
        if move.promotion is None and not shaped:
            for m in candidates:
                if not m.is_castle:
                    continue
                if move.to_sq == m.rook_from:
                    return m
                if move.to_sq == m.to_sq and not KING_ATTACKS[m.from_sq] & bit(m.to_sq):
                    return m
        raise IllegalMove(
            f"illegal move {square_to_str(move.from_sq)}{square_to_str(move.to_sq)}"
            f" for {self.us.name.lower()}",
            move=move,
        )

    def is_legal(self, move: Union[Move, LegalMove, PreMove]) -> bool:
        try:
            self.resolve(move)
        except IllegalMove:
            return False
        return True


# --- Pre-move geometry ---
def pre_move_destinations(position: Position, from_sq: int) -> int:
    """Squares a piece of the side not to move could target next turn.

    Occupancy is ignored; the queued move is checked against real legality
    after the opponent has replied.
    """
    mover = position.turn.other
    idx = position.index_at(from_sq)
    if idx is None or idx // 6 != mover:
        return 0
    piece = idx % 6
    if piece == PAWN:
        forward = 8 if mover == WHITE else -8
        start_rank = 1 if mover == WHITE else 6
        dests = bit(from_sq + forward) | PAWN_ATTACKS[mover][from_sq]
        if from_sq >> 3 == start_rank:
            dests |= bit(from_sq + 2 * forward)
        return dests
    if piece == KNIGHT:
        return KNIGHT_ATTACKS[from_sq]
    if piece == BISHOP:
        return bishop_attacks(from_sq, 0)
    if piece == ROOK:
        return rook_attacks(from_sq, 0)
    if piece == QUEEN:
        return queen_attacks(from_sq, 0)
    dests = KING_ATTACKS[from_sq]
    rights = position.castling[mover]
    if rights.any and rights.king_square == from_sq:
        for side in (KINGSIDE, QUEENSIDE):
            if rights.has(side):
                dests |= bit(rights.king_destination(side)) | bit(rights.rook_square(side))
    return dests & ~bit(from_sq)


def shape_pre_move(position: Position, move: Move) -> PreMove:
    """Build a PreMove for the side not to move from piece geometry alone.

    Raises:
        IllegalMove: If the piece cannot reach the square on any board, or
            the promotion piece does not fit the move.
    """
    mover = position.turn.other
    idx = position.index_at(move.from_sq)
    if idx is None or not pre_move_destinations(position, move.from_sq) & bit(move.to_sq):
        raise IllegalMove("pre-move does not fit the piece's movement", move=move)
    piece = idx % 6

    if piece == PAWN:
        last_rank = bool(bit(move.to_sq) & _promotion_rank(mover))
        if last_rank != (move.promotion is not None):
            raise IllegalMove("promotion piece required exactly on the last rank", move=move)
        kind = MoveKind.DOUBLE_PUSH if abs(move.to_sq - move.from_sq) == 16 else MoveKind.NORMAL
        return PreMove(move.from_sq, move.to_sq, move.promotion, kind=kind)
    if move.promotion is not None:
        raise IllegalMove("only pawns promote", move=move)

    if piece == KING:
        rights = position.castling[mover]
        sides = [s for s in (KINGSIDE, QUEENSIDE) if rights.has(s)] if rights.any else []
        for side in sides:
            if move.to_sq == rights.rook_square(side):
                return _castle_pre_move(position, mover, side)
        if not KING_ATTACKS[move.from_sq] & bit(move.to_sq):
            for side in sides:
                if move.to_sq == rights.king_destination(side):
                    return _castle_pre_move(position, mover, side)
    return PreMove(move.from_sq, move.to_sq)


def _castle_pre_move(position: Position, color: Color, side: CastleSide) -> PreMove:
    rights = position.castling[color]
    return PreMove(
        rights.king_square,
        rights.king_destination(side),
        kind=MoveKind.CASTLE,
        rook_from=rights.rook_square(side),
    )
