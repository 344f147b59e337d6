import logging
import random
from dataclasses import dataclass
from typing import Union

from flask import current_app

from memory_game.services.storage import DatabaseKeyValueStore
from .difficulty import DIFFICULTY_SETTINGS
from .high_scores import HIGH_SCORE_LIMIT, HIGH_SCORES_KEY, HighScoreStore
from .registry import SessionRegistry
from .scheduler import ManualScheduler, SocketIOScheduler
from .session import RESOLUTION_DELAY_SEC, TICK_INTERVAL_SEC, GameSession

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'memory_game'


@dataclass
class GameServices:
    registry: SessionRegistry
    scheduler: Union[ManualScheduler, SocketIOScheduler]
    high_scores: HighScoreStore


def room_for(session_id: str) -> str:
    return f"game:{session_id}"


def init_game_services(app, socketio) -> GameServices:
    """Build the scheduler, high score store and session registry for ``app``.

    In TESTING mode the scheduler is a ManualScheduler, so tests move the
    clock themselves instead of waiting on background tasks.
    """
    cfg = app.config
    if cfg.get('TESTING') and not cfg.get('ENABLE_SCHEDULER_IN_TESTS'):
        scheduler = ManualScheduler()
    else:
        scheduler = SocketIOScheduler(socketio)

    high_scores = HighScoreStore(
        DatabaseKeyValueStore(app),
        DIFFICULTY_SETTINGS.keys(),
        key=cfg.get('HIGH_SCORES_KEY', HIGH_SCORES_KEY),
        limit=int(cfg.get('HIGH_SCORE_LIMIT', HIGH_SCORE_LIMIT)),
    )
    seed = cfg.get('BOARD_SEED')
    default_difficulty = cfg.get('DEFAULT_DIFFICULTY', 'easy')
    resolution_delay = float(cfg.get('RESOLUTION_DELAY_SEC', RESOLUTION_DELAY_SEC))
    tick_interval = float(cfg.get('TICK_INTERVAL_SEC', TICK_INTERVAL_SEC))

    def make_session(session_id, rng=None):
        room = room_for(session_id)

        def notify(event, payload):
            socketio.emit(event, dict(payload, session_id=session_id), to=room, namespace='/ws')

        return GameSession(
            high_scores,
            scheduler,
            notify=notify,
            rng=rng or random.Random(seed),
            default_difficulty=default_difficulty,
            resolution_delay=resolution_delay,
            tick_interval=tick_interval,
        )

    registry = SessionRegistry(make_session, idle_ttl=float(cfg.get('SESSION_IDLE_TTL_SEC', 0)) or None)
    services = GameServices(registry, scheduler, high_scores)
    app.extensions[EXTENSION_KEY] = services
    logger.debug(f"[services] scheduler={type(scheduler).__name__} seed={seed}")
    return services


def get_game_services(app=None) -> GameServices:
    return (app or current_app).extensions[EXTENSION_KEY]
