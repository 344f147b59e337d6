"""Key-value persistence used by the high score store."""

from typing import Dict, Optional

from memory_game import db


class KeyValueStore:
    """Minimal string store: ``get`` returns None when the key is absent."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value


class DatabaseKeyValueStore(KeyValueStore):
    """Stores values in the ``key_value`` table.

    Every call opens its own app context so it can be used from scheduler
    callbacks running outside a request.
    """

    def __init__(self, app):
        self.app = app

    def get(self, key):
        from memory_game.models import KeyValue

        with self.app.app_context():
            row = db.session.get(KeyValue, key)
            return row.value if row else None

    def set(self, key, value):
        from memory_game.models import KeyValue

        with self.app.app_context():
            row = db.session.get(KeyValue, key)
            if row is None:
                row = KeyValue(key=key, value=value)
            else:
                row.value = value
            db.session.add(row)
            try:
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
