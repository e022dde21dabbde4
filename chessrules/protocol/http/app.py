from __future__ import annotations

import logging
from typing import Dict, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from ...board.backrank import BACKRANK_COUNT, STANDARD_BACKRANK_ID
from ...board.errors import ChessError
from ...board.fen import parse_fen, to_fen
from ...board.material import Color
from ...board.moves import parse_uci
from ...board.perft import divide, perft as perft_nodes
from ...board.play import EngineBoard
from ...board.position import Position
from ...board.rules import GameResult, WinReason
from .error import (
    chess_error_handler,
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    backrank_id: Optional[int] = Field(default=None, ge=0, lt=BACKRANK_COUNT)
    shuffled: bool = Field(default=False, description="Draw a random Chess960 back rank")
    fen: Optional[str] = Field(default=None, description="Start from this FEN instead")


class MoveRequest(BaseModel):
    move: str = Field(..., description="UCI move string, e.g., e2e4; Chess960 castles as king takes rook")


class ReplayRequest(BaseModel):
    moves: list[str] = Field(default_factory=list)
    backrank_id: Optional[int] = Field(default=None, ge=0, lt=BACKRANK_COUNT)
    fen: Optional[str] = None


class ResignRequest(BaseModel):
    color: str = Field(..., pattern="^[wb]$", description="Side that resigns")


class PerftRequest(BaseModel):
    fen: Optional[str] = None
    backrank_id: Optional[int] = Field(default=None, ge=0, lt=BACKRANK_COUNT)
    depth: int = Field(default=1, ge=0, le=5)
    divide: bool = False


class ResultView(BaseModel):
    outcome: str
    winner: Optional[str]
    reason: str


class GameState(BaseModel):
    game_id: str
    fen: str
    backrank_id: Optional[int]
    turn: str
    legal_moves: list[str]
    in_check: bool
    result: Optional[ResultView]
    last_move: Optional[str]
    move_history: list[str]


class ReviewState(BaseModel):
    game_id: str
    ply: int
    plies: int
    fen: str


def create_app(log_level: Union[int, str] = logging.INFO) -> FastAPI:
    app = FastAPI(title="Chess Rules API", version="0.1.0")

    logging.basicConfig(level=log_level)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ChessError, chess_error_handler)
    app.add_exception_handler(Exception, exception_handler)

    # In-memory session store for games
    store = InMemorySessionStore()

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    # Game handlers are sync so they run in the threadpool and can take the per-game lock
    @app.post("/api/games", response_model=GameState)
    def create_game(req: Optional[CreateGameRequest] = None) -> GameState:
        req = req or CreateGameRequest()
        if req.shuffled:
            board = EngineBoard.shuffled()
        else:
            board = EngineBoard(req.backrank_id, _start_position(req.fen))
        game_id = store.create(board)
        logger.info("game %s created (back rank %s)", game_id, board.backrank_id)
        return _state(game_id, board)

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    def get_state(game_id: str) -> GameState:
        with _locked(store, game_id) as board:
            return _state(game_id, board)

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    def make_move(game_id: str, req: MoveRequest) -> GameState:
        try:
            move = parse_uci(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        with _locked(store, game_id) as board:
            board.apply(move)
            if board.result is not None:
                logger.info("game %s over: %s (%s)", game_id, board.result, board.result.reason)
            return _state(game_id, board)

    @app.post("/api/games/{game_id}/replay", response_model=GameState)
    def replay(game_id: str, req: ReplayRequest) -> GameState:
        try:
            moves = [parse_uci(m) for m in req.moves]
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        board = EngineBoard.replay(moves, req.backrank_id, _start_position(req.fen))
        try:
            store.set(game_id, board)
        except KeyError:
            raise HTTPException(status_code=404, detail="game not found")
        return _state(game_id, board)

    @app.post("/api/games/{game_id}/resign", response_model=GameState)
    def resign(game_id: str, req: ResignRequest) -> GameState:
        loser = Color.WHITE if req.color == "w" else Color.BLACK
        with _locked(store, game_id) as board:
            board.conclude(GameResult.win(loser.other, WinReason.RESIGNED))
            return _state(game_id, board)

    @app.get("/api/games/{game_id}/review/{ply}", response_model=ReviewState)
    def review(game_id: str, ply: int) -> ReviewState:
        with _locked(store, game_id) as board:
            try:
                position = board.history.position_at(ply)
            except IndexError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return ReviewState(game_id=game_id, ply=ply, plies=len(board.history), fen=to_fen(position))

    @app.delete("/api/games/{game_id}")
    def delete_game(game_id: str) -> Dict[str, str]:
        if store.get(game_id) is None:
            raise HTTPException(status_code=404, detail="game not found")
        store.delete(game_id)
        return {"status": "deleted"}

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, object]:
        if req.fen and req.backrank_id is not None:
            raise HTTPException(status_code=400, detail="give either fen or backrank_id")
        if req.fen:
            position = parse_fen(req.fen)
        else:
            position = Position.initial(STANDARD_BACKRANK_ID if req.backrank_id is None else req.backrank_id)
        chess960 = req.backrank_id is not None and req.backrank_id != STANDARD_BACKRANK_ID
        if req.divide and req.depth > 0:
            counts = divide(position, req.depth, chess960)
            return {"nodes": sum(counts.values()), "divide": counts}
        return {"nodes": perft_nodes(position, req.depth)}

    return app


def _start_position(fen: Optional[str]) -> Optional[Position]:
    return parse_fen(fen) if fen else None


def _locked(store: InMemorySessionStore, game_id: str):
    if store.get(game_id) is None:
        raise HTTPException(status_code=404, detail="game not found")
    return store.locked(game_id)


def _state(game_id: str, board: EngineBoard) -> GameState:
    history = [m.to_uci(board.chess960) for m in board.moves]
    result = board.result
    return GameState(
        game_id=game_id,
        fen=to_fen(board.position, shredder=board.chess960),
        backrank_id=board.backrank_id,
        turn=board.position.turn.char,
        legal_moves=[m.to_uci(board.chess960) for m in board.legal_moves()],
        in_check=board.in_check,
        result=_result_view(result) if result is not None else None,
        last_move=history[-1] if history else None,
        move_history=history,
    )


def _result_view(result: GameResult) -> ResultView:
    return ResultView(
        outcome=str(result),
        winner=result.winner.char if result.winner is not None else None,
        reason=result.reason,
    )


# Default app for non-factory servers
app = create_app()
