from .backrank import BACKRANK_COUNT, STANDARD_BACKRANK_ID, BackRank, shuffled_backrank_id
from .castling import CastleSide, CastlingRights
from .errors import ChessError, GameAlreadyTerminal, IllegalMove, InvalidPosition
from .fen import STARTING_FEN, parse_fen, to_fen
from .interfaces import HasPosition, LegalMoveSource, Reviewable
from .legal import MoveState
from .material import BLACK, WHITE, Color, Material, Piece
from .moves import LegalMove, Move, MoveKind, PreMove, parse_uci
from .perft import divide, perft
from .play import EngineBoard, PlayerBoard
from .position import MoveId, Position, PositionKey
from .review import History, ReviewNavigator
from .rules import DrawReason, GameResult, WinReason, is_insufficient_material

__all__ = [
    "BACKRANK_COUNT",
    "STANDARD_BACKRANK_ID",
    "BackRank",
    "shuffled_backrank_id",
    "CastleSide",
    "CastlingRights",
    "ChessError",
    "GameAlreadyTerminal",
    "IllegalMove",
    "InvalidPosition",
    "STARTING_FEN",
    "parse_fen",
    "to_fen",
    "HasPosition",
    "LegalMoveSource",
    "Reviewable",
    "MoveState",
    "BLACK",
    "WHITE",
    "Color",
    "Material",
    "Piece",
    "LegalMove",
    "Move",
    "MoveKind",
    "PreMove",
    "parse_uci",
    "divide",
    "perft",
    "EngineBoard",
    "PlayerBoard",
    "MoveId",
    "Position",
    "PositionKey",
    "History",
    "ReviewNavigator",
    "DrawReason",
    "GameResult",
    "WinReason",
    "is_insufficient_material",
]
