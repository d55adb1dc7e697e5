"""Key-value collaborator used for preference blobs and prompt cooldowns."""
import logging
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from perkwatch.errors import PersistenceError
from perkwatch.models.setting import Setting

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class DatabaseKeyValueStore:
    """Key-value store backed by the ``settings`` table."""

    def __init__(self, db: Session):
        self._db = db

    def get(self, key: str) -> str | None:
        try:
            row = self._db.get(Setting, key)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read {key!r}: {exc}") from exc
        return row.value if row else None

    def set(self, key: str, value: str) -> None:
        try:
            row = self._db.get(Setting, key)
            if row:
                row.value = value
            else:
                self._db.add(Setting(key=key, value=value))
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise PersistenceError(f"Could not write {key!r}: {exc}") from exc

    def remove(self, key: str) -> None:
        try:
            row = self._db.get(Setting, key)
            if row:
                self._db.delete(row)
                self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise PersistenceError(f"Could not remove {key!r}: {exc}") from exc


class InMemoryKeyValueStore:
    def __init__(self, initial: dict[str, str] | None = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)
