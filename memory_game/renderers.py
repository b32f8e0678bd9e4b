from typing import Any, Dict, List, Tuple


class Renderer:
    """Presentation collaborator notified on every transition. Does nothing by default."""

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        pass


class RecordingRenderer(Renderer):
    """Headless renderer that keeps every event, for tests and console play."""

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, event, payload):
        self.events.append((event, payload))

    def named(self, event: str):
        return [payload for name, payload in self.events if name == event]

    @property
    def last_state(self):
        states = self.named('state_update')
        return states[-1] if states else None

    def clear(self) -> None:
        self.events.clear()


class SocketIORenderer(Renderer):
    """Broadcasts controller events to everyone in the game's room."""

    def __init__(self, game_code: str, namespace: str = '/ws'):
        self.game_code = game_code
        self.namespace = namespace

    @property
    def room(self) -> str:
        return f"game:{self.game_code}"

    def emit(self, event, payload):
        from memory_game import socketio
        socketio.emit(event, payload, to=self.room, namespace=self.namespace)
