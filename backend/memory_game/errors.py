"""Error types raised by the memory game services."""


class MemoryGameError(Exception):
    """Base class for memory game errors."""


class ConfigurationError(MemoryGameError):
    """Unknown difficulty, or a board that cannot be built from the symbol pool.

    Raised before any state is touched, so the caller's current game is left
    as it was.
    """


class StorageCorruptionError(MemoryGameError):
    """Stored high score data could not be decoded."""
