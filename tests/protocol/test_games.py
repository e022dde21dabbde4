from __future__ import annotations

from fastapi.testclient import TestClient

from chessrules.board.fen import STARTING_FEN
from chessrules.protocol.http.app import create_app

FOOLS_MATE = ["f2f3", "e7e5", "g2g4", "d8h4"]


def _client() -> TestClient:
    return TestClient(create_app())


def _new_game(client: TestClient, **body) -> str:
    r = client.post("/api/games", json=body) if body else client.post("/api/games")
    assert r.status_code == 200
    return r.json()["game_id"]


def test_create_game_and_get_state() -> None:
    client = _client()
    r = client.post("/api/games")
    assert r.status_code == 200
    body = r.json()
    game_id = body["game_id"]
    assert body["fen"] == STARTING_FEN
    assert body["backrank_id"] == 518
    assert body["turn"] == "w"
    assert body["result"] is None

    state = client.get(f"/api/games/{game_id}/state").json()
    assert state["game_id"] == game_id
    assert len(state["legal_moves"]) == 20
    assert state["move_history"] == []
    assert state["last_move"] is None


def test_unknown_game_is_404() -> None:
    client = _client()
    for r in (
        client.get("/api/games/does-not-exist/state"),
        client.post("/api/games/does-not-exist/move", json={"move": "e2e4"}),
        client.delete("/api/games/does-not-exist"),
    ):
        assert r.status_code == 404
        assert r.json()["error"]["code"] == "not_found"


def test_move_updates_state() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"})
    assert r.status_code == 200
    state = r.json()
    assert state["fen"] == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"
    assert state["turn"] == "b"
    assert state["last_move"] == "e2e4"
    assert state["move_history"] == ["e2e4"]


def test_illegal_and_malformed_moves_are_400() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"move": "e2e5"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "bad_request"

    r_bad = client.post(f"/api/games/{game_id}/move", json={"move": "zz"})
    assert r_bad.status_code == 400

    state = client.get(f"/api/games/{game_id}/state").json()
    assert state["move_history"] == []


def test_checkmate_ends_game_and_further_moves_conflict() -> None:
    client = _client()
    game_id = _new_game(client)
    for m in FOOLS_MATE:
        r = client.post(f"/api/games/{game_id}/move", json={"move": m})
        assert r.status_code == 200
    state = r.json()
    assert state["in_check"] is True
    assert state["legal_moves"] == []
    assert state["result"] == {"outcome": "0-1", "winner": "b", "reason": "checkmate"}

    r_late = client.post(f"/api/games/{game_id}/move", json={"move": "a2a3"})
    assert r_late.status_code == 409
    assert r_late.json()["error"]["code"] == "conflict"


def test_resign() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/resign", json={"color": "w"})
    assert r.status_code == 200
    assert r.json()["result"] == {"outcome": "0-1", "winner": "b", "reason": "resigned"}

    r_again = client.post(f"/api/games/{game_id}/resign", json={"color": "b"})
    assert r_again.status_code == 409

    r_bad = client.post(f"/api/games/{game_id}/resign", json={"color": "white"})
    assert r_bad.status_code == 422


def test_replay_replaces_game() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/replay", json={"moves": ["e2e4", "e7e5", "g1f3"]})
    assert r.status_code == 200
    assert r.json()["move_history"] == ["e2e4", "e7e5", "g1f3"]

    r_bad = client.post(f"/api/games/{game_id}/replay", json={"moves": ["e2e4", "e7e5", "e1e3"]})
    assert r_bad.status_code == 400
    # a failed replay keeps the previous game
    state = client.get(f"/api/games/{game_id}/state").json()
    assert state["move_history"] == ["e2e4", "e7e5", "g1f3"]


def test_review_positions_by_ply() -> None:
    client = _client()
    game_id = _new_game(client)
    client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"})
    client.post(f"/api/games/{game_id}/move", json={"move": "e7e5"})

    r0 = client.get(f"/api/games/{game_id}/review/0")
    assert r0.status_code == 200
    assert r0.json() == {"game_id": game_id, "ply": 0, "plies": 3, "fen": STARTING_FEN}

    r1 = client.get(f"/api/games/{game_id}/review/1")
    assert r1.json()["fen"].split()[:2] == ["rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR", "b"]

    r_out = client.get(f"/api/games/{game_id}/review/3")
    assert r_out.status_code == 404


def test_delete_game() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.delete(f"/api/games/{game_id}")
    assert r.status_code == 200
    assert r.json() == {"status": "deleted"}
    assert client.get(f"/api/games/{game_id}/state").status_code == 404


def test_chess960_game_uses_king_takes_rook_castling() -> None:
    client = _client()
    # back rank 0 is BBQNNRKR
    game_id = _new_game(client, backrank_id=0)
    state = client.get(f"/api/games/{game_id}/state").json()
    assert state["backrank_id"] == 0
    assert state["fen"].startswith("bbqnnrkr/pppppppp/8/8/8/8/PPPPPPPP/BBQNNRKR w HFhf ")

    for m in ["f2f4", "f7f5", "f1f2", "f8f7"]:
        assert client.post(f"/api/games/{game_id}/move", json={"move": m}).status_code == 200
    # the f1 rook has left, so only the h-file right remains
    r = client.post(f"/api/games/{game_id}/move", json={"move": "g1h1"})
    assert r.status_code == 200
    assert r.json()["last_move"] == "g1h1"


def test_create_from_fen_and_conflicting_start() -> None:
    client = _client()
    fen = "4k3/8/8/8/8/8/8/R3K3 w Q - 0 1"
    r = client.post("/api/games", json={"fen": fen})
    assert r.status_code == 200
    assert r.json()["fen"] == fen
    assert r.json()["backrank_id"] is None

    r_both = client.post("/api/games", json={"fen": fen, "backrank_id": 3})
    assert r_both.status_code == 400

    r_bad = client.post("/api/games", json={"fen": "not a fen"})
    assert r_bad.status_code == 400

    r_range = client.post("/api/games", json={"backrank_id": 960})
    assert r_range.status_code == 422


def test_perft_endpoint() -> None:
    client = _client()
    r = client.post("/api/perft", json={"depth": 2})
    assert r.status_code == 200
    assert r.json() == {"nodes": 400}

    r_div = client.post("/api/perft", json={"depth": 1, "divide": True})
    body = r_div.json()
    assert body["nodes"] == 20
    assert body["divide"]["e2e4"] == 1

    r_960 = client.post("/api/perft", json={"depth": 2, "backrank_id": 0})
    assert r_960.json() == {"nodes": 400}

    r_both = client.post("/api/perft", json={"depth": 1, "fen": STARTING_FEN, "backrank_id": 0})
    assert r_both.status_code == 400


def test_one_step_castle_history_replays_to_same_position() -> None:
    client = _client()
    fen = "4k3/8/8/8/8/8/8/RK5R w HA - 0 1"
    game_id = _new_game(client, fen=fen)
    r = client.post(f"/api/games/{game_id}/move", json={"move": "b1a1"})
    assert r.status_code == 200
    played = r.json()
    assert played["last_move"] == "b1a1"
    assert played["fen"].startswith("4k3/8/8/8/8/8/8/2KR3R b ")

    r_replay = client.post(
        f"/api/games/{game_id}/replay",
        json={"moves": played["move_history"], "fen": fen},
    )
    assert r_replay.status_code == 200
    assert r_replay.json()["fen"] == played["fen"]
