from flask_socketio import join_room, leave_room, emit
from memory_game import socketio
from flask import current_app, request
from memory_game.services.game.errors import GameError, InvalidAnswer
from memory_game.sessions import get_registry
from typing import Dict, Any
import time


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # If this socket owned a game and no other owner remains, end the game
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if ctx and ctx.get('is_session_owner') and ctx.get('game_code'):
        _release_owner(ctx['game_code'])


def handle_join_game(data=None):
    game_code = _game_code(data)
    if not game_code:
        return
    if game_code not in get_registry():
        emit('error', {'error': 'session_not_found', 'message': f'Game {game_code} not found'})
        return
    is_session_owner = bool((data or {}).get('is_session_owner'))
    room = f"game:{game_code}"
    join_room(room)
    # One owner slot per socket: a rejoin must not count twice
    sid = _get_sid()
    prev = _sid_to_ctx.get(sid) or {}
    owned = prev.get('game_code') if prev.get('is_session_owner') else None
    _sid_to_ctx[sid] = {'game_code': game_code, 'is_session_owner': is_session_owner}
    if owned and (owned != game_code or not is_session_owner):
        _release_owner(owned)
    if is_session_owner and owned != game_code:
        _owner_count[game_code] = _owner_count.get(game_code, 0) + 1
    if is_session_owner:
        _cancel_scheduled_end(game_code)
    emit('joined', {'room': room})
    try:
        with get_registry().locked(game_code) as controller:
            emit('state_update', controller.snapshot())
    except GameError as exc:
        # Giving up ownership may have ended the game just joined
        emit('error', exc.to_dict())


def handle_leave_game(data=None):
    game_code = _game_code(data)
    if not game_code:
        return
    room = f"game:{game_code}"
    leave_room(room)
    emit('left', {'room': room})
    # An owner leaving explicitly quits the game right away
    sid = _get_sid()
    ctx = _sid_to_ctx.get(sid)
    if ctx and ctx.get('game_code') == game_code:
        _sid_to_ctx.pop(sid, None)
        if ctx.get('is_session_owner'):
            end_session(game_code)


def handle_submit_answer(data=None):
    game_code = _game_code(data)
    if not game_code:
        return
    answer = (data or {}).get('answer')
    if answer is None:
        emit('error', {'error': 'missing_answer', 'message': 'answer is required'})
        return
    try:
        with get_registry().locked(game_code) as controller:
            result = controller.submit_answer(str(answer))
    except InvalidAnswer as exc:
        emit('answer_rejected', exc.to_dict())
        return
    except GameError as exc:
        emit('error', exc.to_dict())
        return
    emit('answer_result', result.to_dict())


def handle_next_round(data=None):
    game_code = _game_code(data)
    if not game_code:
        return
    try:
        with get_registry().locked(game_code) as controller:
            if not controller.next_round():
                emit('state_update', controller.snapshot())
    except GameError as exc:
        emit('error', exc.to_dict())


def handle_reset_game(data=None):
    game_code = _game_code(data)
    if not game_code:
        return
    try:
        with get_registry().locked(game_code) as controller:
            controller.reset()
    except GameError as exc:
        emit('error', exc.to_dict())


def handle_ping(data=None):
    emit('pong', data or {})

# ---- Session owner lifecycle helpers ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_owner_count: Dict[str, int] = {}
_end_deadline: Dict[str, float] = {}

def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _game_code(data):
    game_code = (data or {}).get('game_code')
    if not game_code:
        emit('error', {'error': 'missing_game_code', 'message': 'game_code is required'})
        return None
    return str(game_code).upper()

def end_session(game_code: str, app=None) -> None:
    """End the game: tear its controller down and notify clients."""
    get_registry(app).end(game_code)
    # Use socketio.emit since this may be called from a background task
    socketio.emit('session_ended', {'game_code': game_code}, to=f"game:{game_code}", namespace='/ws')
    _owner_count.pop(game_code, None)
    _end_deadline.pop(game_code, None)

def _schedule_end_if_no_owner(app, game_code: str, delay_sec: float = 2.0) -> None:
    if _owner_count.get(game_code, 0) > 0:
        return
    _end_deadline[game_code] = time.time() + delay_sec

    def _runner(code: str, deadline: float):
        sleep_for = max(0.0, deadline - time.time())
        if sleep_for:
            socketio.sleep(sleep_for)
        if _owner_count.get(code, 0) == 0 and _end_deadline.get(code) == deadline:
            with app.app_context():
                end_session(code, app)

    socketio.start_background_task(_runner, game_code, _end_deadline[game_code])

def _cancel_scheduled_end(game_code: str) -> None:
    _end_deadline.pop(game_code, None)

def _release_owner(game_code: str) -> None:
    _owner_count[game_code] = max(0, _owner_count.get(game_code, 0) - 1)
    # In tests, end immediately for determinism; in prod, allow grace period
    if current_app.config.get('TESTING'):
        if _owner_count.get(game_code, 0) == 0 and game_code in get_registry():
            end_session(game_code)
        return
    _schedule_end_if_no_owner(
        current_app._get_current_object(),
        game_code,
        float(current_app.config.get('SESSION_END_GRACE_SEC', 2.0)),
    )


_HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'join_game': handle_join_game,
    'leave_game': handle_leave_game,
    'submit_answer': handle_submit_answer,
    'next_round': handle_next_round,
    'reset_game': handle_reset_game,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for name, handler in _HANDLERS.items():
        socketio.on_event(name, handler, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        for name, handler in _HANDLERS.items():
            socketio.on_event(name, handler, namespace='/')
