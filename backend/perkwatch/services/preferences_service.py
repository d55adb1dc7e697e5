import logging

from pydantic import ValidationError as PydanticValidationError

from perkwatch.config import NOTIFICATION_PREFS_KEY
from perkwatch.errors import PersistenceError
from perkwatch.schemas.notification_preferences import (
    NotificationPreferences,
    NotificationPreferencesUpdate,
)
from perkwatch.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


def load_preferences(store: KeyValueStore) -> NotificationPreferences:
    """Load the stored preference blob.

    A missing, unreadable or malformed blob falls back to the defaults, which
    keep every reminder category enabled. Missing keys in a stored blob take
    their default too.
    """
    try:
        raw = store.get(NOTIFICATION_PREFS_KEY)
    except PersistenceError as exc:
        logger.warning("Could not load notification preferences, using defaults: %s", exc)
        return NotificationPreferences()
    if not raw:
        return NotificationPreferences()
    try:
        return NotificationPreferences.model_validate_json(raw)
    except PydanticValidationError as exc:
        logger.warning("Stored notification preferences are invalid, using defaults: %s", exc)
        return NotificationPreferences()


def save_preferences(store: KeyValueStore, preferences: NotificationPreferences) -> None:
    store.set(NOTIFICATION_PREFS_KEY, preferences.model_dump_json())


def update_preferences(store: KeyValueStore, data: NotificationPreferencesUpdate) -> NotificationPreferences:
    current = load_preferences(store)
    merged = current.model_dump()
    merged.update(data.model_dump(exclude_unset=True, exclude_none=True))
    preferences = NotificationPreferences.model_validate(merged)
    save_preferences(store, preferences)
    return preferences
