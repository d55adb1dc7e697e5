from datetime import time

import pytest
from pydantic import ValidationError as PydanticValidationError

from perkwatch.config import NOTIFICATION_PREFS_KEY
from perkwatch.errors import PersistenceError
from perkwatch.schemas.notification_preferences import (
    NotificationPreferences,
    NotificationPreferencesUpdate,
)
from perkwatch.services.kv_store import DatabaseKeyValueStore, InMemoryKeyValueStore
from perkwatch.services.preferences_service import (
    load_preferences,
    save_preferences,
    update_preferences,
)


class FailingStore:
    def get(self, key):
        raise PersistenceError("disk unavailable")

    def set(self, key, value):
        raise PersistenceError("disk unavailable")

    def remove(self, key):
        raise PersistenceError("disk unavailable")


def test_defaults_enable_everything():
    prefs = NotificationPreferences()
    assert prefs.perk_expiry_reminders_enabled
    assert prefs.quarterly_perk_reminders_enabled
    assert prefs.semi_annual_perk_reminders_enabled
    assert prefs.annual_perk_reminders_enabled
    assert prefs.renewal_reminders_enabled
    assert prefs.first_of_month_reminders_enabled
    assert prefs.perk_reset_confirmation_enabled
    assert prefs.perk_expiry_offsets(1) == [7, 3, 1]
    assert prefs.perk_expiry_offsets(3) == [14, 7]
    assert prefs.perk_expiry_offsets(6) == [30, 14]
    assert prefs.perk_expiry_offsets(12) == [60, 30]
    assert prefs.renewal_reminder_days == [90, 30, 7, 1]
    assert prefs.perk_expiry_reminder_time == time(10, 0)
    assert prefs.first_of_month_reminder_time == time(9, 0)


def test_offsets_are_deduplicated_and_sorted():
    prefs = NotificationPreferences(monthly_perk_expiry_reminder_days=[1, 5, 5, 2])
    assert prefs.monthly_perk_expiry_reminder_days == [5, 2, 1]


def test_negative_offset_rejected():
    with pytest.raises(PydanticValidationError):
        NotificationPreferences(renewal_reminder_days=[30, -1])


def test_missing_blob_gives_defaults():
    assert load_preferences(InMemoryKeyValueStore()) == NotificationPreferences()


def test_unreadable_store_gives_defaults():
    assert load_preferences(FailingStore()) == NotificationPreferences()


def test_malformed_blob_gives_defaults():
    store = InMemoryKeyValueStore({NOTIFICATION_PREFS_KEY: "{not json"})
    assert load_preferences(store) == NotificationPreferences()


def test_partial_blob_fills_missing_keys():
    store = InMemoryKeyValueStore({NOTIFICATION_PREFS_KEY: '{"renewal_reminders_enabled": false}'})
    prefs = load_preferences(store)
    assert prefs.renewal_reminders_enabled is False
    assert prefs.first_of_month_reminders_enabled is True


def test_update_merges_with_stored_values():
    store = InMemoryKeyValueStore()
    save_preferences(store, NotificationPreferences(first_of_month_reminders_enabled=False))

    prefs = update_preferences(store, NotificationPreferencesUpdate(quarterly_perk_expiry_reminder_days=[21]))

    assert prefs.first_of_month_reminders_enabled is False
    assert prefs.quarterly_perk_expiry_reminder_days == [21]
    assert load_preferences(store) == prefs


def test_update_on_failing_store_raises():
    with pytest.raises(PersistenceError):
        update_preferences(FailingStore(), NotificationPreferencesUpdate(renewal_reminders_enabled=False))


def test_database_store_roundtrip(db_session):
    store = DatabaseKeyValueStore(db_session)
    update_preferences(store, NotificationPreferencesUpdate(perk_reset_confirmation_enabled=False))
    assert load_preferences(DatabaseKeyValueStore(db_session)).perk_reset_confirmation_enabled is False
