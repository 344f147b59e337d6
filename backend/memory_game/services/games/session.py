"""The memory game state machine.

One ``GameSession`` drives one player's games: it owns the current
``GameState``, reacts to flips and clock ticks, and reports every change
through a ``notify(event, payload)`` callable supplied by the transport.

Each new game bumps the session's generation. Timer and resolution
callbacks carry the generation they were scheduled for and are dropped
when it no longer matches, so a reset during the one-second resolution
window never leaks into the next game.
"""

import logging
import random
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from .board import Card, generate_board
from .difficulty import DIFFICULTY_SETTINGS, SYMBOLS, DifficultySetting, get_difficulty
from .high_scores import HighScoreStore, ScoreRecord
from .scheduler import ScheduledTask
from .scoring import calculate_score

logger = logging.getLogger(__name__)

RESOLUTION_DELAY_SEC = 1.0
TICK_INTERVAL_SEC = 1.0

# Outbound events
GAME_STARTED = 'game_started'
DIFFICULTY_SELECTED = 'difficulty_selected'
CARD_FLIPPED = 'card_flipped'
CARDS_MATCHED = 'cards_matched'
CARDS_UNFLIPPED = 'cards_unflipped'
TIME_UPDATED = 'time_updated'
MOVES_UPDATED = 'moves_updated'
GAME_WON = 'game_won'
GAME_LOST = 'game_lost'

Notify = Callable[[str, Dict[str, Any]], None]


class GameStatus(str, Enum):
    NOT_STARTED = 'not_started'
    PLAYING = 'playing'
    WON = 'won'
    LOST = 'lost'


@dataclass
class GameState:
    difficulty: str
    generation: int
    cards: Tuple[Card, ...] = ()
    flipped: List[int] = field(default_factory=list)  # order of flipping, at most 2
    solved: Set[int] = field(default_factory=set)
    moves: int = 0
    time_remaining: int = 0
    started: bool = False
    over: bool = False
    score: Optional[int] = None

    @property
    def status(self) -> GameStatus:
        if not self.started:
            return GameStatus.NOT_STARTED
        if not self.over:
            return GameStatus.PLAYING
        if self.cards and len(self.solved) == len(self.cards):
            return GameStatus.WON
        return GameStatus.LOST

    def to_dict(self, reveal: bool = False):
        visible = set(self.flipped) | self.solved
        return {
            'difficulty': self.difficulty,
            'generation': self.generation,
            'status': self.status.value,
            'cards': [
                {
                    'position': c.position,
                    'symbol': c.symbol if (reveal or c.position in visible) else None,
                    'flipped': c.position in self.flipped,
                    'solved': c.position in self.solved,
                }
                for c in self.cards
            ],
            'flipped': list(self.flipped),
            'solved': sorted(self.solved),
            'moves': self.moves,
            'time_remaining': self.time_remaining,
            'started': self.started,
            'over': self.over,
            'score': self.score,
        }


def _noop(event, payload):
    pass


class GameSession:
    def __init__(
        self,
        high_scores: HighScoreStore,
        scheduler,
        notify: Optional[Notify] = None,
        rng: Optional[random.Random] = None,
        difficulties: Mapping[str, DifficultySetting] = DIFFICULTY_SETTINGS,
        symbols: Sequence[str] = SYMBOLS,
        default_difficulty: str = 'easy',
        resolution_delay: float = RESOLUTION_DELAY_SEC,
        tick_interval: float = TICK_INTERVAL_SEC,
    ):
        self.high_scores = high_scores
        self.scheduler = scheduler
        self.notify = notify or _noop
        self.rng = rng or random.Random()
        self.difficulties = difficulties
        self.symbols = tuple(symbols)
        self.resolution_delay = resolution_delay
        self.tick_interval = tick_interval
        self._difficulty = get_difficulty(default_difficulty, difficulties).name
        self._generation = 0
        self._timer: Optional[ScheduledTask] = None
        # Flask-SocketIO may run timer callbacks on worker threads
        self._lock = threading.RLock()
        self._state = GameState(difficulty=self._difficulty, generation=self._generation)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def difficulty(self) -> str:
        return self._difficulty

    @property
    def status(self) -> GameStatus:
        return self._state.status

    def to_dict(self):
        with self._lock:
            return self._state.to_dict()

    # ---- lifecycle ----

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _abandon(self) -> int:
        """Invalidate every callback scheduled for the current game."""
        self._cancel_timer()
        self._generation += 1
        return self._generation

    def select_difficulty(self, name: str) -> None:
        """Pick the tier for the next game and stop any game in progress."""
        setting = get_difficulty(name, self.difficulties)
        with self._lock:
            self._difficulty = setting.name
            generation = self._abandon()
            self._state = GameState(difficulty=setting.name, generation=generation)
            logger.info(f"[difficulty] tier={setting.name} generation={generation}")
            self.notify(DIFFICULTY_SELECTED, {'difficulty': setting.name})

    def start_game(self, difficulty: Optional[str] = None) -> GameState:
        setting = get_difficulty(difficulty or self._difficulty, self.difficulties)
        # Deal before touching state so a bad configuration leaves the old game intact
        cards = generate_board(setting.pair_count, self.symbols, self.rng)
        with self._lock:
            self._difficulty = setting.name
            generation = self._abandon()
            self._state = GameState(
                difficulty=setting.name,
                generation=generation,
                cards=cards,
                time_remaining=setting.time_limit_seconds,
                started=True,
            )
            self._timer = self.scheduler.call_every(self.tick_interval, self._on_tick, generation)
            logger.info(
                f"[start] tier={setting.name} generation={generation} "
                f"pairs={setting.pair_count} time_limit={setting.time_limit_seconds}s"
            )
            self.notify(GAME_STARTED, {
                'difficulty': setting.name,
                'generation': generation,
                'card_count': len(cards),
                'time_limit': setting.time_limit_seconds,
            })
            self.notify(TIME_UPDATED, {'seconds': self._state.time_remaining})
            self.notify(MOVES_UPDATED, {'count': 0})
            return self._state

    def reset(self, difficulty: Optional[str] = None) -> GameState:
        return self.start_game(difficulty)

    def close(self) -> None:
        with self._lock:
            generation = self._abandon()
            logger.info(f"[close] generation={generation}")

    # ---- player input ----

    def flip_card(self, position: int) -> bool:
        """Flip one card. Returns False when the click was ignored."""
        with self._lock:
            state = self._state
            if (
                not state.started
                or state.over
                or len(state.flipped) >= 2
                or position in state.flipped
                or position in state.solved
                or not 0 <= position < len(state.cards)
            ):
                logger.debug(f"[flip-ignored] generation={state.generation} position={position}")
                return False

            state.flipped.append(position)
            state.moves += 1
            self.notify(CARD_FLIPPED, {'position': position, 'symbol': state.cards[position].symbol})
            self.notify(MOVES_UPDATED, {'count': state.moves})

            if len(state.flipped) == 2:
                self._check_match(state)
            return True

    def _check_match(self, state: GameState) -> None:
        first, second = state.flipped
        if state.cards[first].symbol == state.cards[second].symbol:
            state.solved.update((first, second))
            self.notify(CARDS_MATCHED, {'positions': [first, second]})
            if len(state.solved) == len(state.cards):
                self._win(state)
        self.scheduler.call_later(self.resolution_delay, self._on_resolve, state.generation)

    def _on_resolve(self, task: ScheduledTask) -> None:
        with self._lock:
            if task.generation != self._generation:
                logger.debug(f"[resolve-stale] task_generation={task.generation} current={self._generation}")
                return
            state = self._state
            hidden = [p for p in state.flipped if p not in state.solved]
            state.flipped = []
            if hidden:
                self.notify(CARDS_UNFLIPPED, {'positions': hidden})

    # ---- clock ----

    def _on_tick(self, task: ScheduledTask) -> None:
        with self._lock:
            if task.generation != self._generation:
                logger.debug(f"[tick-stale] task_generation={task.generation} current={self._generation}")
                task.cancel()
                return
            self.tick()

    def tick(self) -> None:
        with self._lock:
            state = self._state
            if not state.started or state.over:
                return
            state.time_remaining = max(0, state.time_remaining - 1)
            self.notify(TIME_UPDATED, {'seconds': state.time_remaining})
            if state.time_remaining <= 0:
                self._lose(state)

    # ---- terminal states ----

    def _win(self, state: GameState) -> None:
        state.over = True
        self._cancel_timer()
        state.score = calculate_score(len(state.solved), state.time_remaining, state.moves)
        record = ScoreRecord(score=state.score, moves=state.moves, time_remaining=state.time_remaining)
        logger.info(
            f"[win] tier={state.difficulty} generation={state.generation} score={state.score} "
            f"moves={state.moves} time_remaining={state.time_remaining}"
        )
        # The player still sees the win when the table cannot be written
        try:
            high_scores = self.high_scores.record(state.difficulty, record)
            recorded = True
        except Exception:
            logger.exception(f"[win] tier={state.difficulty} generation={state.generation} high score not saved")
            high_scores = []
            recorded = False
        self.notify(GAME_WON, {
            'score': state.score,
            'moves': state.moves,
            'time_remaining': state.time_remaining,
            'high_scores': [r.to_dict() for r in high_scores],
            'recorded': recorded,
        })

    def _lose(self, state: GameState) -> None:
        state.over = True
        self._cancel_timer()
        logger.info(f"[lose] tier={state.difficulty} generation={state.generation} moves={state.moves}")
        self.notify(GAME_LOST, {
            'moves': state.moves,
            'high_scores': [r.to_dict() for r in self.high_scores.top(state.difficulty)],
        })
