import os


def _optional_int(name):
    value = os.environ.get(name)
    return int(value) if value not in (None, '') else None


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///memory_game.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Origins allowed for HTTP and websocket clients
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173'
        ).split(',') if o.strip()
    ]
    # Game timers (seconds)
    RESOLUTION_DELAY_SEC = float(os.environ.get('RESOLUTION_DELAY_SEC', '1.0'))
    TICK_INTERVAL_SEC = float(os.environ.get('TICK_INTERVAL_SEC', '1.0'))
    DEFAULT_DIFFICULTY = os.environ.get('DEFAULT_DIFFICULTY', 'easy')
    # High score table stored under one key in the key_value table
    HIGH_SCORES_KEY = os.environ.get('HIGH_SCORES_KEY', 'memoryGameHighScores')
    HIGH_SCORE_LIMIT = int(os.environ.get('HIGH_SCORE_LIMIT', '5'))
    # Optional: fixed seed for reproducible board layouts. Unset means random.
    BOARD_SEED = _optional_int('BOARD_SEED')
    # Sessions nobody has touched for this long are dropped. 0 keeps them forever.
    SESSION_IDLE_TTL_SEC = float(os.environ.get('SESSION_IDLE_TTL_SEC', '1800'))
