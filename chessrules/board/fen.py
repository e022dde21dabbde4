from __future__ import annotations

from typing import Dict, List, Optional

from .castling import KINGSIDE, QUEENSIDE, CastlingRights
from .errors import InvalidPosition
from .material import BLACK, CHAR_TO_PIECE, KING, ROOK, WHITE, Color, Material, material_index
from .position import Position
from .square import FILE_NAMES, iter_squares, square, square_to_str, str_to_square

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


def parse_fen(fen: str) -> Position:
    """Create a position from a FEN string.

    Castling accepts ``KQkq`` (outermost rook on that side, as in X-FEN) as
    well as Shredder-FEN rook files (``HAha``), so Chess960 positions load
    too.

    Raises:
        InvalidPosition: If ``fen`` is malformed or describes a position
            that cannot occur in a game.
    """
    if not fen or not isinstance(fen, str):
        raise InvalidPosition("FEN must be a non-empty string")
    parts = fen.strip().split()
    if len(parts) != 6:
        raise InvalidPosition("FEN must have 6 fields")
    placement_str, stm, castling_str, ep, halfmove, fullmove = parts

    placement = _parse_placement(placement_str)

    if stm not in ("w", "b"):
        raise InvalidPosition("side to move must be 'w' or 'b'")
    turn = WHITE if stm == "w" else BLACK

    ep_square: Optional[int]
    if ep == "-":
        ep_square = None
    else:
        try:
            ep_square = str_to_square(ep)
        except ValueError as e:
            raise InvalidPosition("invalid en passant square") from e

    try:
        halfmove_clock = int(halfmove)
        fullmove_number = int(fullmove)
    except ValueError as e:
        raise InvalidPosition("invalid move counters in FEN") from e

    castling = (
        _parse_castling(castling_str, placement, WHITE),
        _parse_castling(castling_str, placement, BLACK),
    )
    return Position.build(
        placement,
        turn=turn,
        castling=castling,
        ep_square=ep_square,
        halfmove_clock=halfmove_clock,
        fullmove_number=fullmove_number,
    )


def _parse_placement(placement: str) -> Dict[int, Material]:
    ranks = placement.split("/")
    if len(ranks) != 8:
        raise InvalidPosition("FEN board must have 8 ranks")
    result: Dict[int, Material] = {}
    for rank_idx, rank in enumerate(ranks[::-1]):  # start from rank 1 (bottom)
        file_idx = 0
        for ch in rank:
            if ch.isdigit():
                n = int(ch)
                if n < 1 or n > 8:
                    raise InvalidPosition("invalid empty count in FEN rank")
                file_idx += n
            else:
                if ch not in CHAR_TO_PIECE:
                    raise InvalidPosition(f"invalid piece in FEN: {ch!r}")
                if file_idx >= 8:
                    raise InvalidPosition("too many squares in FEN rank")
                result[square(file_idx, rank_idx)] = Material.from_index(CHAR_TO_PIECE[ch])
                file_idx += 1
        if file_idx != 8:
            raise InvalidPosition("rank does not sum to 8 squares in FEN")
    return result


def _parse_castling(field: str, placement: Dict[int, Material], color: Color) -> CastlingRights:
    if field == "-":
        return CastlingRights.none(color)
    rank = 0 if color == WHITE else 7
    chars = [ch for ch in field if ch.isupper() == (color == WHITE)]
    for ch in field:
        if ch.lower() not in "kq" + FILE_NAMES:
            raise InvalidPosition(f"invalid castling rights: {field!r}")
    if not chars:
        return CastlingRights.none(color)

    king = Material(color, KING)
    rook = Material(color, ROOK)
    king_files = [f for f in range(8) if placement.get(square(f, rank)) == king]
    if not king_files:
        raise InvalidPosition("castling rights without a king on the back rank")
    king_file = king_files[0]
    rook_files = [f for f in range(8) if placement.get(square(f, rank)) == rook]

    kingside: Optional[int] = None
    queenside: Optional[int] = None
    for ch in chars:
        c = ch.lower()
        if c == "k":
            outer = [f for f in rook_files if f > king_file]
            if not outer:
                raise InvalidPosition("kingside castling right without a rook")
            f = max(outer)
        elif c == "q":
            outer = [f for f in rook_files if f < king_file]
            if not outer:
                raise InvalidPosition("queenside castling right without a rook")
            f = min(outer)
        else:
            f = FILE_NAMES.index(c)
        if f == king_file:
            raise InvalidPosition("castling rook file matches the king file")
        if f > king_file:
            kingside = f
        else:
            queenside = f
    return CastlingRights(color, king_file, kingside=kingside, queenside=queenside)


def to_fen(position: Position, shredder: bool = False) -> str:
    """Serialize `position` into FEN.

    Castling rights are written as ``KQkq`` when the right belongs to the
    outermost rook on that side, and as a rook file otherwise. With
    ``shredder=True`` rook files are always used.
    """
    ranks_str: List[str] = []
    for rank_idx in range(7, -1, -1):  # 7..0 maps to ranks 8..1
        run = 0
        row = []
        for file_idx in range(8):
            material = position.piece_at(square(file_idx, rank_idx))
            if material is None:
                run += 1
            else:
                if run > 0:
                    row.append(str(run))
                    run = 0
                row.append(material.char)
        if run > 0:
            row.append(str(run))
        ranks_str.append("".join(row))
    placement = "/".join(ranks_str)

    castling = "".join(_castling_chars(position, c, shredder) for c in (WHITE, BLACK)) or "-"
    ep = square_to_str(position.ep_square) if position.ep_square is not None else "-"
    return (
        f"{placement} {position.turn.char} {castling} {ep} "
        f"{position.halfmove_clock} {position.fullmove_number}"
    )


def _castling_chars(position: Position, color: Color, shredder: bool) -> str:
    rights = position.castling[color]
    if not rights.any:
        return ""
    rook_files = [sq & 7 for sq in iter_squares(position.bb[material_index(color, ROOK)]) if sq >> 3 == rights.rank]
    out = []
    for side, letter in ((KINGSIDE, "k"), (QUEENSIDE, "q")):
        f = rights.rook_file(side)
        if f is None:
            continue
        outermost = max(rook_files) if side == KINGSIDE else min(rook_files)
        ch = letter if not shredder and f == outermost else FILE_NAMES[f]
        out.append(ch.upper() if color == WHITE else ch)
    return "".join(out)
