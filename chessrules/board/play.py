from __future__ import annotations

import logging
import random
from typing import Iterable, List, Optional, Sequence, Union

from .backrank import STANDARD_BACKRANK_ID, shuffled_backrank_id
from .errors import GameAlreadyTerminal, IllegalMove, InvalidPosition
from .legal import MoveState, pre_move_destinations, shape_pre_move
from .material import Color
from .moves import LegalMove, Move, PreMove
from .position import MoveId, Position
from .review import History, ReviewNavigator
from .rules import GameResult, detect

logger = logging.getLogger(__name__)


def _starting_position(backrank_id: Optional[int], position: Optional[Position]) -> Position:
    if position is not None:
        if backrank_id is not None:
            raise InvalidPosition("give either a back rank id or a position, not both")
        position.validate()
        return position
    return Position.initial(STANDARD_BACKRANK_ID if backrank_id is None else backrank_id)


class _PlayState:
    """Game progression shared by both board modes.

    Holds the history, the MoveState of the live position and the result.
    Every rejected call leaves all three untouched.
    """

    def __init__(self, position: Position, backrank_id: Optional[int]) -> None:
        self.backrank_id = backrank_id
        self.history = History(position)
        self.state = MoveState(position)
        self.result: Optional[GameResult] = None
        self._detect()

    @property
    def position(self) -> Position:
        return self.history.current

    @property
    def chess960(self) -> bool:
        return self.backrank_id is not None and self.backrank_id != STANDARD_BACKRANK_ID

    def check_active(self) -> None:
        if self.result is not None:
            raise GameAlreadyTerminal(self.result)

    def apply(self, move: Union[Move, LegalMove]) -> LegalMove:
        self.check_active()
        legal = self.state.resolve(move)
        self.advance(legal)
        return legal

    def advance(self, legal: LegalMove) -> None:
        nxt = self.position.apply(legal)
        state = MoveState(nxt)
        self.history.push(legal, nxt)
        self.state = state
        self._detect()

    def conclude(self, result: GameResult) -> None:
        self.check_active()
        self.result = result
        logger.debug("game concluded by caller: %s (%s)", result, result.reason)

    def _detect(self) -> None:
        self.result = detect(
            self.position,
            self.state.has_moves(),
            self.state.in_check,
            self.history.repetitions(),
        )
        if self.result is not None:
            logger.debug("game over at ply %d: %s (%s)", len(self.history) - 1, self.result, self.result.reason)


class EngineBoard:
    """Authoritative board that plays both sides and enforces every rule.

    Example:
        board = EngineBoard.standard()
        board.apply(parse_uci("e2e4"))
    """

    def __init__(self, backrank_id: Optional[int] = None, position: Optional[Position] = None) -> None:
        self._play = _PlayState(_starting_position(backrank_id, position), backrank_id)

    @classmethod
    def standard(cls) -> "EngineBoard":
        return cls(STANDARD_BACKRANK_ID)

    @classmethod
    def shuffled(cls, rng: Optional[random.Random] = None) -> "EngineBoard":
        return cls(shuffled_backrank_id(rng))

    @classmethod
    def replay(
        cls,
        moves: Iterable[Union[Move, LegalMove]],
        backrank_id: Optional[int] = None,
        position: Optional[Position] = None,
    ) -> "EngineBoard":
        """Rebuild a game from its opening position and move list.

        Raises:
            IllegalMove: At the first move that is not legal.
            GameAlreadyTerminal: If moves continue past the end of the game.
        """
        board = cls(backrank_id, position)
        for move in moves:
            board.apply(move)
        return board

    # --- State ---
    @property
    def position(self) -> Position:
        return self._play.position

    @property
    def history(self) -> History:
        return self._play.history

    @property
    def moves(self) -> Sequence[LegalMove]:
        return self._play.history.moves

    @property
    def backrank_id(self) -> Optional[int]:
        return self._play.backrank_id

    @property
    def chess960(self) -> bool:
        return self._play.chess960

    @property
    def result(self) -> Optional[GameResult]:
        return self._play.result

    @property
    def is_terminal(self) -> bool:
        return self._play.result is not None

    @property
    def in_check(self) -> bool:
        return self._play.state.in_check

    def legal_moves(self) -> List[LegalMove]:
        return list(self._play.state.legal_moves())

    def move_destinations(self, from_sq: int) -> int:
        return self._play.state.destinations(from_sq)

    # --- Actions ---
    def apply(self, move: Union[Move, LegalMove]) -> MoveId:
        """Apply `move` for the side to move and return its MoveId.

        Raises:
            GameAlreadyTerminal: If the game already has a result.
            IllegalMove: If `move` is not legal in the current position.
        """
        move_id = self.position.move_id
        self._play.apply(move)
        return move_id

    def conclude(self, result: GameResult) -> None:
        """Record a result decided outside the rules (resignation, time, agreement)."""
        self._play.conclude(result)


class PlayerBoard:
    """Board of one participant: our moves, their moves and one pre-move.

    A move submitted for us while the opponent is to move is queued as a
    pre-move. It is re-checked once their move arrives and either played
    at once or dropped.
    """

    def __init__(
        self,
        color: Color,
        backrank_id: Optional[int] = None,
        position: Optional[Position] = None,
    ) -> None:
        self.color = Color(color)
        self._play = _PlayState(_starting_position(backrank_id, position), backrank_id)
        self._pre_move: Optional[PreMove] = None
        self.review = ReviewNavigator(self._play.history)

    @classmethod
    def replay(
        cls,
        color: Color,
        moves: Iterable[Union[Move, LegalMove]],
        backrank_id: Optional[int] = None,
        position: Optional[Position] = None,
    ) -> "PlayerBoard":
        board = cls(color, backrank_id, position)
        for move in moves:
            board._play.apply(move)
        return board

    # --- State ---
    @property
    def position(self) -> Position:
        return self._play.position

    @property
    def history(self) -> History:
        return self._play.history

    @property
    def moves(self) -> Sequence[LegalMove]:
        return self._play.history.moves

    @property
    def backrank_id(self) -> Optional[int]:
        return self._play.backrank_id

    @property
    def chess960(self) -> bool:
        return self._play.chess960

    @property
    def result(self) -> Optional[GameResult]:
        return self._play.result

    @property
    def is_terminal(self) -> bool:
        return self._play.result is not None

    @property
    def in_check(self) -> bool:
        return self._play.state.in_check

    @property
    def is_our_turn(self) -> bool:
        return self.position.turn == self.color

    @property
    def pre_move(self) -> Optional[PreMove]:
        return self._pre_move

    def legal_moves(self) -> List[LegalMove]:
        return list(self._play.state.legal_moves())

    def view(self) -> Position:
        """Position to display: the reviewed one, or the live one with any pre-move shown."""
        if not self.review.at_end:
            return self.review.current
        if self._pre_move is not None:
            return self.position.preview(self._pre_move)
        return self.position

    def move_destinations(self, from_sq: int) -> int:
        """Legal destinations on our turn; pre-move destinations on theirs."""
        if self.is_terminal:
            return 0
        if self.is_our_turn:
            return self._play.state.destinations(from_sq)
        return pre_move_destinations(self.position, from_sq)

    # --- Actions ---
    def submit_our_move(self, move: Move) -> Optional[MoveId]:
        """Play `move` now, or queue it as a pre-move while they are to move.

        Returns the MoveId when the move was played, None when it was queued.

        Raises:
            GameAlreadyTerminal: If the game already has a result.
            IllegalMove: If the move is illegal now, or cannot be a pre-move.
        """
        self._play.check_active()
        if self.is_our_turn:
            move_id = self.position.move_id
            self._play.apply(move)
            return move_id
        pre_move = shape_pre_move(self.position, move)
        if self._pre_move is not None:
            logger.debug("pre-move %s replaced by %s", self._pre_move.to_uci(), pre_move.to_uci())
        else:
            logger.debug("pre-move %s queued", pre_move.to_uci())
        self._pre_move = pre_move
        return None

    def submit_their_move(self, move: Move) -> MoveId:
        """Apply the opponent's move, then play or drop any queued pre-move.

        Raises:
            GameAlreadyTerminal: If the game already has a result.
            IllegalMove: If it is our turn or the move is illegal.
        """
        self._play.check_active()
        if self.is_our_turn:
            raise IllegalMove("it is not the opponent's turn", move=move)
        move_id = self.position.move_id
        self._play.apply(move)
        self._flush_pre_move()
        return move_id

    def cancel_pre_move(self) -> Optional[PreMove]:
        pre_move, self._pre_move = self._pre_move, None
        return pre_move

    def conclude(self, result: GameResult) -> None:
        self._play.conclude(result)
        self._pre_move = None

    def _flush_pre_move(self) -> None:
        pre_move, self._pre_move = self._pre_move, None
        if pre_move is None:
            return
        if self.is_terminal:
            logger.debug("pre-move %s dropped: game over", pre_move.to_uci())
            return
        try:
            legal = self._play.state.resolve(pre_move.move)
        except IllegalMove:
            logger.debug("pre-move %s dropped: not legal after the reply", pre_move.to_uci())
            return
        self._play.advance(legal)
        logger.debug("pre-move %s played", pre_move.to_uci())
