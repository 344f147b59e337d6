from dataclasses import dataclass
from typing import Dict, Mapping

from memory_game.errors import ConfigurationError


@dataclass(frozen=True)
class DifficultySetting:
    name: str
    pair_count: int
    time_limit_seconds: int

    def to_dict(self):
        return {
            'name': self.name,
            'pair_count': self.pair_count,
            'time_limit_seconds': self.time_limit_seconds,
        }


DIFFICULTY_SETTINGS: Dict[str, DifficultySetting] = {
    'easy': DifficultySetting('easy', pair_count=6, time_limit_seconds=60),
    'medium': DifficultySetting('medium', pair_count=8, time_limit_seconds=90),
    'hard': DifficultySetting('hard', pair_count=12, time_limit_seconds=120),
}

SYMBOLS = ('🌸', '🍜', '🗼', '🎎', '🎌', '🍱', '🐠', '🗻', '🎭', '🍵', '⛩️', '🏯')


def get_difficulty(name, settings: Mapping[str, DifficultySetting] = DIFFICULTY_SETTINGS) -> DifficultySetting:
    setting = settings.get(name) if isinstance(name, str) else None
    if setting is None:
        raise ConfigurationError(f"Unknown difficulty: {name!r}")
    return setting
