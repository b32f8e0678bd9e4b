import os


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Question timing (milliseconds)
    BASE_DURATION_MS = int(os.environ.get('BASE_DURATION_MS', '2500'))
    PER_EXTRA_DIGIT_MS = int(os.environ.get('PER_EXTRA_DIGIT_MS', '500'))
    # Length that gets the plain base duration; longer numbers add time per digit
    BASE_LENGTH = int(os.environ.get('BASE_LENGTH', '6'))
    PAUSE_MS = int(os.environ.get('PAUSE_MS', '500'))
    RESULT_DWELL_MS = int(os.environ.get('RESULT_DWELL_MS', '1000'))
    # When false the result stays up until the player asks for the next round
    RESULT_AUTO_ADVANCE = _env_bool('RESULT_AUTO_ADVANCE', True)
    INPUT_ERROR_CLEAR_MS = int(os.environ.get('INPUT_ERROR_CLEAR_MS', '1500'))
    LEVEL_CHANGE_DISPLAY_MS = int(os.environ.get('LEVEL_CHANGE_DISPLAY_MS', '1800'))
    # Difficulty staircase: 'staircase' (open-ended) or 'capped'
    DIFFICULTY_VARIANT = os.environ.get('DIFFICULTY_VARIANT', 'staircase')
    MIN_LENGTH = int(os.environ.get('MIN_LENGTH', '6'))
    FIRST_STEP_SCORE = int(os.environ.get('FIRST_STEP_SCORE', '5'))
    STEP_WIDTH = int(os.environ.get('STEP_WIDTH', '7'))
    MAX_LENGTH = int(os.environ['MAX_LENGTH']) if os.environ.get('MAX_LENGTH') else None
    # 'realtime' runs timers as Socket.IO background tasks, 'simulated' uses a virtual clock
    SCHEDULER = os.environ.get('SCHEDULER', 'realtime')
    # Optional: heartbeat interval for timer worker logs (ms). 0 disables.
    TIMER_HEARTBEAT_MS = int(os.environ.get('TIMER_HEARTBEAT_MS', '0'))
    # Grace period before a game is torn down once its owner disconnects
    SESSION_END_GRACE_SEC = float(os.environ.get('SESSION_END_GRACE_SEC', '2.0'))
    MAX_SESSIONS = int(os.environ.get('MAX_SESSIONS', '1000'))
    # Optional: debounce next/reset requests (ms). 0 disables.
    CONTROLLER_DEBOUNCE_MS = int(os.environ.get('CONTROLLER_DEBOUNCE_MS', '0'))
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173',
        ).split(',')
        if origin.strip()
    ]
