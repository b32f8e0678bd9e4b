import os
import sys
import pytest

# Ensure the project root (containing the `memory_game` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from memory_game import create_app, socketio
from memory_game.renderers import RecordingRenderer
from memory_game.services.game.controller import GameSettings, RoundController
from memory_game.services.game.scheduler import SimulatedScheduler
from memory_game.sessions import get_registry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SCHEDULER = 'simulated'
    BASE_DURATION_MS = 2500
    PER_EXTRA_DIGIT_MS = 500
    PAUSE_MS = 500
    RESULT_DWELL_MS = 1000
    RESULT_AUTO_ADVANCE = True
    INPUT_ERROR_CLEAR_MS = 1500
    LEVEL_CHANGE_DISPLAY_MS = 1800
    DIFFICULTY_VARIANT = 'staircase'
    MIN_LENGTH = 6
    FIRST_STEP_SCORE = 5
    STEP_WIDTH = 7
    MAX_LENGTH = None
    MAX_SESSIONS = 50
    CONTROLLER_DEBOUNCE_MS = 0
    CORS_ORIGINS = ['http://localhost:5173']


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application
        get_registry(application).clear()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def registry(flask_app):
    return get_registry(flask_app)


@pytest.fixture()
def clock(registry):
    return registry.clock


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


class FixedNumbers:
    """Hands out queued numbers, then falls back to a repeated digit pattern."""

    def __init__(self, *numbers):
        self.queue = list(numbers)
        self.requested = []

    def __call__(self, length):
        self.requested.append(length)
        if self.queue:
            return self.queue.pop(0)
        return ('1234567890' * (length // 10 + 1))[:length]


@pytest.fixture()
def scheduler():
    return SimulatedScheduler()


@pytest.fixture()
def renderer():
    return RecordingRenderer()


@pytest.fixture()
def numbers():
    return FixedNumbers()


@pytest.fixture()
def controller(scheduler, renderer, numbers):
    return RoundController(
        scheduler,
        renderer=renderer,
        settings=GameSettings(),
        number_source=numbers,
        game_code='TEST',
    )


@pytest.fixture()
def to_answer_prompt():
    def _run(controller, scheduler):
        """Run the pending showing and pause timers so the round accepts answers."""
        scheduler.advance(controller.pending_timer.due_ms - scheduler.now_ms())
        scheduler.advance(controller.pending_timer.due_ms - scheduler.now_ms())
    return _run
