from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from ...engine.game import Game


@dataclass
class GameSession:
    game: Game
    # Searches mutate the board in place, so one request at a time per game
    lock: threading.RLock = field(default_factory=threading.RLock)


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    The store lock guards the session map; each session carries its own lock
    that callers hold (via ``locked``) while reading or mutating the game.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, GameSession] = {}

    def create(self, game: Optional[Game] = None) -> str:
        """Create a new game session and return its `game_id`."""
        gid = str(uuid.uuid4())
        if game is None:
            game = Game.new()
        with self._lock:
            self._sessions[gid] = GameSession(game)
        return gid

    def get(self, game_id: str) -> Optional[Game]:
        with self._lock:
            session = self._sessions.get(game_id)
        return session.game if session is not None else None

    def set(self, game_id: str, game: Game) -> None:
        """Replace the game of an existing session, keeping its lock."""
        with self._lock:
            session = self._sessions.get(game_id)
            if session is None:
                raise KeyError(game_id)
        with session.lock:
            session.game = game

    @contextmanager
    def locked(self, game_id: str) -> Iterator[Optional[Game]]:
        """Hold the session lock and yield its game, or None if unknown."""
        with self._lock:
            session = self._sessions.get(game_id)
        if session is None:
            yield None
            return
        with session.lock:
            yield session.game

    def delete(self, game_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(game_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
