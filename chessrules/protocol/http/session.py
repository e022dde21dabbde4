from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from ...board.play import EngineBoard


@dataclass
class GameSession:
    board: EngineBoard
    lock: threading.RLock = field(default_factory=threading.RLock)


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Hand out one game's board under that game's own lock
    - Replace a game's board (move-list import)
    - Delete sessions

    The store lock only guards the mapping; moves on one game never wait
    for another game.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._games: Dict[str, GameSession] = {}

    def create(self, board: Optional[EngineBoard] = None) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        if board is None:
            board = EngineBoard.standard()
        with self._lock:
            self._games[gid] = GameSession(board)
        return gid

    def get(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._games.get(game_id)

    @contextmanager
    def locked(self, game_id: str) -> Iterator[EngineBoard]:
        """Yield the game's board while holding its lock.

        Raises:
            KeyError: If no such game exists.
        """
        session = self.get(game_id)
        if session is None:
            raise KeyError(game_id)
        with session.lock:
            yield session.board

    def set(self, game_id: str, board: EngineBoard) -> None:
        session = self.get(game_id)
        if session is None:
            raise KeyError(game_id)
        with session.lock:
            session.board = board

    def delete(self, game_id: str) -> None:
        with self._lock:
            if game_id in self._games:
                del self._games[game_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)
