from __future__ import annotations

import pytest

from chessrules.board.castling import KINGSIDE, QUEENSIDE, CastlingRights
from chessrules.board.errors import IllegalMove
from chessrules.board.fen import parse_fen, to_fen
from chessrules.board.legal import MoveState
from chessrules.board.material import BLACK, KING, ROOK, WHITE, Material
from chessrules.board.moves import LegalMove, Move, MoveKind, parse_uci
from chessrules.board.play import EngineBoard
from chessrules.board.position import Position
from chessrules.board.square import (
    A1,
    B1,
    C1,
    D1,
    E1,
    E2,
    F1,
    G1,
    H1,
    bit,
)


def moves_set(fen: str) -> set[str]:
    return {m.to_uci() for m in MoveState(parse_fen(fen)).legal_moves()}


def test_white_castling_available_when_clear_and_not_in_check() -> None:
    ms = moves_set("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    assert "e1g1" in ms
    assert "e1c1" in ms


def test_white_castling_blocked_when_in_check() -> None:
    ms = moves_set("4rk2/8/8/8/8/8/8/R3K2R w KQ - 0 1")
    assert "e1g1" not in ms
    assert "e1c1" not in ms


def test_castling_through_attacked_square_is_illegal() -> None:
    ms = moves_set("r3kr2/8/8/8/8/8/8/R3K2R w KQq - 0 1")
    assert "e1g1" not in ms
    assert "e1c1" in ms


def test_attacked_rook_path_does_not_stop_castling() -> None:
    # b1 is only crossed by the rook
    ms = moves_set("1r2k2r/8/8/8/8/8/8/R3K2R w KQk - 0 1")
    assert "e1c1" in ms


def test_castling_blocked_by_piece_between() -> None:
    ms = moves_set("r3k2r/8/8/8/8/8/8/RN2K1NR w KQkq - 0 1")
    assert "e1g1" not in ms
    assert "e1c1" not in ms


def test_castle_input_as_king_to_rook_square() -> None:
    state = MoveState(parse_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"))
    by_destination = state.resolve(parse_uci("e1g1"))
    by_rook = state.resolve(parse_uci("e1h1"))
    assert by_destination == by_rook
    assert by_rook.kind == MoveKind.CASTLE
    assert by_rook.rook_from == H1
    assert by_rook.to_uci() == "e1g1"
    assert by_rook.to_uci(chess960=True) == "e1h1"


def test_castling_moves_king_and_rook_and_clears_rights() -> None:
    pos = parse_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    after = pos.apply(MoveState(pos).resolve(parse_uci("e1c1")))
    assert after.piece_at(C1) == Material(WHITE, KING)
    assert after.piece_at(D1) == Material(WHITE, ROOK)
    assert after.piece_at(A1) is None
    assert not after.castling_rights(WHITE).any
    assert after.castling_rights(BLACK).any
    assert to_fen(after).split()[2] == "kq"


def test_king_move_revokes_both_rights() -> None:
    pos = parse_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    after = pos.apply(MoveState(pos).resolve(parse_uci("e1f1")))
    assert not after.castling_rights(WHITE).any


def test_rook_capture_revokes_both_sides_rights() -> None:
    pos = parse_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    after = pos.apply(MoveState(pos).resolve(parse_uci("a1a8")))
    assert to_fen(after).split()[2] == "Kk"


def test_rights_model_queries() -> None:
    rights = CastlingRights.full(WHITE, king_file=4, queenside=0, kingside=7)
    assert rights.king_square == E1
    assert rights.rook_square(KINGSIDE) == H1
    assert rights.king_destination(QUEENSIDE) == C1
    assert rights.rook_destination(QUEENSIDE) == D1
    assert rights.transit_mask(KINGSIDE) == bit(E1) | bit(F1) | bit(G1)
    assert rights.clearance_mask(QUEENSIDE) == bit(B1) | bit(C1) | bit(D1)
    assert rights.revoke(H1).rook_file(KINGSIDE) is None
    assert rights.revoke(H1).has(QUEENSIDE)
    assert not rights.revoke(E1).any
    assert rights.revoke(E2) == rights
    with pytest.raises(ValueError):
        CastlingRights.none(WHITE).king_square


# --- Chess960 ---


def test_chess960_rook_between_king_start_and_destination() -> None:
    pos = parse_fen("1k6/8/8/8/8/8/8/RKR5 w CA - 0 1")
    state = MoveState(pos)
    castle = state.resolve(Move(B1, C1))  # king takes own rook
    assert castle.kind == MoveKind.CASTLE
    assert state.resolve(Move(B1, G1)) == castle
    after = pos.apply(castle)
    assert after.piece_at(G1) == Material(WHITE, KING)
    assert after.piece_at(F1) == Material(WHITE, ROOK)
    assert after.piece_at(B1) is None
    assert after.piece_at(C1) is None
    assert after.piece_at(A1) == Material(WHITE, ROOK)


def test_chess960_queenside_swap_with_adjacent_rook() -> None:
    # king b1 goes to c1, rook a1 to d1
    pos = parse_fen("1k6/8/8/8/8/8/8/RK5R w HA - 0 1")
    state = MoveState(pos)
    castle = state.resolve(Move(B1, A1))
    after = pos.apply(castle)
    assert after.piece_at(C1) == Material(WHITE, KING)
    assert after.piece_at(D1) == Material(WHITE, ROOK)
    # b1 -> c1 is also an ordinary king step, so that input stays a king move
    step = state.resolve(Move(B1, C1))
    assert step.kind == MoveKind.NORMAL


def test_chess960_destination_shielded_by_castling_rook() -> None:
    # the black rook on h1 only reaches g1 once the white rook has left it
    blocked = MoveState(parse_fen("4k3/8/8/8/8/8/8/4K1Rr w G - 0 1"))
    assert not blocked.is_legal(Move(E1, G1))
    with pytest.raises(IllegalMove):
        blocked.resolve(Move(E1, G1))
    free = MoveState(parse_fen("4k3/8/8/8/8/8/8/4K1R1 w G - 0 1"))
    castle = free.resolve(Move(E1, G1))
    assert castle.kind == MoveKind.CASTLE
    after = free.position.apply(castle)
    assert after.piece_at(G1) == Material(WHITE, KING)
    assert after.piece_at(F1) == Material(WHITE, ROOK)


def test_chess960_king_already_on_destination() -> None:
    pos = parse_fen("4k3/8/8/8/8/8/8/6KR w H - 0 1")
    castle = MoveState(pos).resolve(Move(G1, H1))
    assert castle.kind == MoveKind.CASTLE
    after = pos.apply(castle)
    assert after.piece_at(G1) == Material(WHITE, KING)
    assert after.piece_at(F1) == Material(WHITE, ROOK)
    assert after.piece_at(H1) is None


def test_chess960_start_rights_follow_back_rank() -> None:
    pos = Position.initial(0)  # BBQNNRKR
    rights = pos.castling_rights(WHITE)
    assert rights.king_file == 6
    assert rights.rook_file(QUEENSIDE) == 5
    assert rights.rook_file(KINGSIDE) == 7


# --- One-step castles in records ---


@pytest.mark.parametrize(
    "fen,king_to,rook_from",
    [
        ("4k3/8/8/8/8/8/8/RK5R w HA - 0 1", "b1a1", A1),  # king b1 -> c1
        ("4k3/8/8/8/8/8/8/5K1R w H - 0 1", "f1h1", H1),  # king f1 -> g1
    ],
)
def test_one_step_castle_replays_exactly(fen: str, king_to: str, rook_from: int) -> None:
    pos = parse_fen(fen)
    board = EngineBoard(position=pos)
    board.apply(parse_uci(king_to))
    castle = board.moves[-1]
    assert castle.is_castle and castle.rook_from == rook_from

    assert EngineBoard.replay(board.moves, position=pos).position == board.position
    # the written form must not read back as a plain king step
    assert castle.to_uci() == king_to
    replayed = EngineBoard.replay([parse_uci(m.to_uci()) for m in board.moves], position=pos)
    assert replayed.position == board.position


def test_recorded_king_step_stays_a_king_step() -> None:
    state = MoveState(parse_fen("4k3/8/8/8/8/8/8/RK5R w HA - 0 1"))
    step = state.resolve(LegalMove(B1, C1))
    assert step.kind == MoveKind.NORMAL
    castle = state.resolve(LegalMove(B1, C1, kind=MoveKind.CASTLE, rook_from=A1))
    assert castle.is_castle
    with pytest.raises(IllegalMove):
        state.resolve(LegalMove(B1, C1, kind=MoveKind.CASTLE, rook_from=C1))


def test_castle_moves_carry_a_rook_square() -> None:
    with pytest.raises(ValueError):
        LegalMove(E1, G1, kind=MoveKind.CASTLE)
    with pytest.raises(ValueError):
        LegalMove(E1, F1, rook_from=H1)
