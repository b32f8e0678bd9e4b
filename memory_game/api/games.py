from flask import Blueprint, jsonify, request, current_app
import time
from memory_game.services.game.errors import InvalidAnswer
from memory_game.sessions import get_registry


games = Blueprint('games', __name__)

_last_player_action: dict[str, float] = {}


def _debounced(action: str, game_code: str) -> bool:
    """True when the same action on the same game arrived within CONTROLLER_DEBOUNCE_MS."""
    try:
        debounce_ms = int(current_app.config.get('CONTROLLER_DEBOUNCE_MS', 0))
    except (TypeError, ValueError):
        debounce_ms = 0
    if debounce_ms <= 0:
        return False
    key = f"{action}:{game_code.upper()}"
    now = time.time() * 1000.0
    last = _last_player_action.get(key, 0)
    if now - last < debounce_ms:
        return True
    _last_player_action[key] = now
    return False


@games.route('/create', methods=['POST'])
def create_game():
    handle = get_registry().create()
    with handle.lock:
        state = handle.controller.snapshot()
    current_app.logger.info(f"[create] game={handle.game_code}")
    return jsonify({
        'message': 'New game created!',
        'game_code': handle.game_code,
        'state': state,
    }), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    with get_registry().locked(game_code) as controller:
        payload = controller.snapshot()
        # Include durations so clients can show countdowns
        payload['timing'] = controller.settings.timing_dict()
    return jsonify(payload)


@games.route('/<string:game_code>/answer', methods=['POST'])
def submit_answer(game_code):
    data = request.get_json(silent=True) or {}
    answer = data.get('answer')
    if answer is None:
        return jsonify({'error': 'missing_answer', 'message': 'answer is required'}), 400
    if not isinstance(answer, str):
        answer = str(answer)

    with get_registry().locked(game_code) as controller:
        try:
            result = controller.submit_answer(answer)
        except InvalidAnswer as exc:
            # Same round continues; the player may try again
            return jsonify(exc.to_dict()), exc.status_code
        state = controller.snapshot()
    return jsonify({'result': result.to_dict(), 'state': state})


@games.route('/<string:game_code>/next', methods=['POST'])
def next_round(game_code):
    if _debounced('next', game_code):
        return jsonify({'message': 'debounced'}), 202
    with get_registry().locked(game_code) as controller:
        if not controller.next_round():
            return jsonify({'message': 'ignored', 'state': controller.snapshot()}), 202
        return jsonify(controller.snapshot())


@games.route('/<string:game_code>/reset', methods=['POST'])
def reset_game(game_code):
    if _debounced('reset', game_code):
        return jsonify({'message': 'debounced'}), 202
    with get_registry().locked(game_code) as controller:
        controller.reset()
        return jsonify(controller.snapshot())


@games.route('/<string:game_code>', methods=['DELETE'])
def end_game(game_code):
    registry = get_registry()
    # Raises SessionNotFound (404) for unknown codes
    registry.get(game_code)
    from memory_game.socketio_events import end_session
    end_session(game_code.upper())
    return jsonify({'ended': game_code.upper()})
