"""Top scores per difficulty tier, persisted as one JSON document."""

import json
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List

from memory_game.errors import ConfigurationError, StorageCorruptionError
from memory_game.services.storage import KeyValueStore

logger = logging.getLogger(__name__)

HIGH_SCORES_KEY = 'memoryGameHighScores'
HIGH_SCORE_LIMIT = 5

HighScoreTable = Dict[str, List['ScoreRecord']]


@dataclass(frozen=True)
class ScoreRecord:
    score: int
    moves: int
    time_remaining: int

    def to_dict(self):
        return {
            'score': self.score,
            'moves': self.moves,
            'timeRemaining': self.time_remaining,
        }

    @classmethod
    def from_dict(cls, data) -> 'ScoreRecord':
        return cls(
            score=int(data['score']),
            moves=int(data['moves']),
            time_remaining=int(data['timeRemaining']),
        )


class HighScoreStore:
    """Read-modify-write access to the high score table.

    ``load`` never fails on bad stored data: a corrupt document is logged and
    treated as an empty table.
    """

    def __init__(self, storage: KeyValueStore, tiers: Iterable[str], key: str = HIGH_SCORES_KEY,
                 limit: int = HIGH_SCORE_LIMIT):
        self.storage = storage
        self.tiers = tuple(tiers)
        self.key = key
        self.limit = limit

    def _empty(self) -> HighScoreTable:
        return {tier: [] for tier in self.tiers}

    def _decode(self, raw: str) -> HighScoreTable:
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise TypeError(f"expected an object, got {type(data).__name__}")
            table = self._empty()
            for tier, entries in data.items():
                if not isinstance(entries, list):
                    raise TypeError(f"tier {tier!r} is not a list")
                table[tier] = [ScoreRecord.from_dict(e) for e in entries]
            return table
        except (ValueError, TypeError, KeyError) as exc:
            raise StorageCorruptionError(f"Unreadable high score data under {self.key!r}: {exc}") from exc

    def _encode(self, table: HighScoreTable) -> str:
        return json.dumps(
            {tier: [r.to_dict() for r in records] for tier, records in table.items()},
            ensure_ascii=False,
        )

    def load(self) -> HighScoreTable:
        raw = self.storage.get(self.key)
        if raw is None:
            return self._empty()
        try:
            return self._decode(raw)
        except StorageCorruptionError as exc:
            logger.warning(f"[high-scores] discarding stored table: {exc}")
            return self._empty()

    def top(self, difficulty: str) -> List[ScoreRecord]:
        if difficulty not in self.tiers:
            raise ConfigurationError(f"Unknown difficulty: {difficulty!r}")
        return self.load().get(difficulty, [])

    def record(self, difficulty: str, record: ScoreRecord) -> List[ScoreRecord]:
        if difficulty not in self.tiers:
            raise ConfigurationError(f"Unknown difficulty: {difficulty!r}")
        table = self.load()
        entries = table.get(difficulty, []) + [record]
        # sorted() is stable, so earlier records win ties
        entries = sorted(entries, key=lambda r: r.score, reverse=True)[:self.limit]
        table[difficulty] = entries
        self.storage.set(self.key, self._encode(table))
        logger.info(f"[high-scores] tier={difficulty} score={record.score} kept={len(entries)}")
        return entries

    def clear(self) -> None:
        self.storage.set(self.key, self._encode(self._empty()))
