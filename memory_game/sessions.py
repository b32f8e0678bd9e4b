"""In-memory registry of live games.

Games exist only for the lifetime of the process; ending one tears its
controller down so no timer outlives it.
"""

import logging
import random
import string
import threading
from contextlib import contextmanager
from typing import Dict, Optional

from memory_game.renderers import Renderer, SocketIORenderer
from memory_game.services.game.controller import GameSettings, RoundController
from memory_game.services.game.errors import SessionNotFound, TooManySessions
from memory_game.services.game.scheduler import RealtimeScheduler, SimulatedScheduler

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'memory_game'


class GameHandle:
    def __init__(self, game_code: str, controller: RoundController, lock: threading.RLock):
        self.game_code = game_code
        self.controller = controller
        self.lock = lock


def generate_game_code(existing, length=4):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in existing:
            return code


class SessionRegistry:
    def __init__(
        self,
        settings: Optional[GameSettings] = None,
        scheduler_kind: str = 'realtime',
        heartbeat_ms: int = 0,
        max_sessions: int = 1000,
        renderer_factory=SocketIORenderer,
    ):
        if scheduler_kind not in ('realtime', 'simulated'):
            raise ValueError(f'Unknown scheduler {scheduler_kind!r}')
        self.settings = settings or GameSettings()
        self.scheduler_kind = scheduler_kind
        self.heartbeat_ms = heartbeat_ms
        self.max_sessions = max_sessions
        self.renderer_factory = renderer_factory
        # One virtual clock shared by every game when simulated
        self.clock = SimulatedScheduler() if scheduler_kind == 'simulated' else None
        self._games: Dict[str, GameHandle] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config) -> 'SessionRegistry':
        return cls(
            settings=GameSettings.from_config(config),
            scheduler_kind=config.get('SCHEDULER', 'realtime'),
            heartbeat_ms=int(config.get('TIMER_HEARTBEAT_MS', 0)),
            max_sessions=int(config.get('MAX_SESSIONS', 1000)),
        )

    def __len__(self):
        return len(self._games)

    def __contains__(self, game_code):
        return game_code.upper() in self._games

    def codes(self):
        return sorted(self._games)

    def create(self, renderer: Optional[Renderer] = None) -> GameHandle:
        with self._lock:
            if len(self._games) >= self.max_sessions:
                raise TooManySessions(self.max_sessions)
            code = generate_game_code(self._games)
            lock = threading.RLock()
            if self.clock is not None:
                scheduler = self.clock
            else:
                scheduler = RealtimeScheduler(guard=lock, heartbeat_ms=self.heartbeat_ms)
            controller = RoundController(
                scheduler,
                renderer=renderer or self.renderer_factory(code),
                settings=self.settings,
                game_code=code,
            )
            handle = GameHandle(code, controller, lock)
            self._games[code] = handle
        logger.info(f"[session-create] game={code} scheduler={self.scheduler_kind}")
        with handle.lock:
            controller.start()
        return handle

    def get(self, game_code: str) -> GameHandle:
        handle = self._games.get((game_code or '').upper())
        if handle is None:
            raise SessionNotFound((game_code or '').upper())
        return handle

    @contextmanager
    def locked(self, game_code: str):
        """Yield the game's controller while holding its lock."""
        handle = self.get(game_code)
        with handle.lock:
            yield handle.controller

    def end(self, game_code: str) -> bool:
        with self._lock:
            handle = self._games.pop((game_code or '').upper(), None)
        if handle is None:
            return False
        with handle.lock:
            handle.controller.teardown()
        logger.info(f"[session-end] game={handle.game_code}")
        return True

    def clear(self) -> None:
        for code in list(self._games):
            self.end(code)


def get_registry(app=None) -> SessionRegistry:
    if app is None:
        from flask import current_app
        app = current_app
    return app.extensions[EXTENSION_KEY]
