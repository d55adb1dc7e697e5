"""Cooldown gate for recurring prompts (notification banner, re-prompt after "later").

``should_show`` is a stateless rule. The helpers below keep one
``CooldownRecord`` per feature name in the key-value store instead of a
bespoke flag per prompt.
"""
import logging
from datetime import datetime

from perkwatch.config import settings
from perkwatch.errors import PersistenceError
from perkwatch.schemas.cooldown import CooldownRecord, PromptChoice, PromptStatus
from perkwatch.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60
_CHOICES = ("enable", "declined", "later")


def should_show(
    choice: PromptChoice | None,
    prompt_enabled: bool,
    last_shown_at: datetime | None,
    cooldown_days: int,
    now: datetime,
) -> bool:
    if choice == "enable":
        return False
    if not prompt_enabled:
        return False
    if last_shown_at is None:
        return True
    if (last_shown_at.tzinfo is None) != (now.tzinfo is None):
        last_shown_at = last_shown_at.replace(tzinfo=now.tzinfo)
    elapsed_days = (now - last_shown_at).total_seconds() / _SECONDS_PER_DAY
    return elapsed_days >= cooldown_days


def _last_shown_key(feature: str) -> str:
    return f"cooldown:{feature}:last_shown_at"


def _choice_key(feature: str) -> str:
    return f"cooldown:{feature}:choice"


def load_cooldown(store: KeyValueStore, feature: str) -> CooldownRecord:
    try:
        raw = store.get(_last_shown_key(feature))
    except PersistenceError as exc:
        logger.warning("Could not load cooldown for %s, treating as never shown: %s", feature, exc)
        return CooldownRecord(key=feature)
    if not raw:
        return CooldownRecord(key=feature)
    try:
        return CooldownRecord(key=feature, last_shown_at=datetime.fromisoformat(raw))
    except ValueError:
        logger.warning("Ignoring malformed cooldown timestamp for %s: %r", feature, raw)
        return CooldownRecord(key=feature)


def record_shown(store: KeyValueStore, feature: str, now: datetime) -> CooldownRecord:
    store.set(_last_shown_key(feature), now.isoformat())
    return CooldownRecord(key=feature, last_shown_at=now)


def clear_cooldown(store: KeyValueStore, feature: str) -> None:
    store.remove(_last_shown_key(feature))


def load_choice(store: KeyValueStore, feature: str) -> PromptChoice | None:
    try:
        raw = store.get(_choice_key(feature))
    except PersistenceError as exc:
        logger.warning("Could not load prompt choice for %s: %s", feature, exc)
        return None
    return raw if raw in _CHOICES else None


def save_choice(store: KeyValueStore, feature: str, choice: PromptChoice | None) -> None:
    if choice is None:
        store.remove(_choice_key(feature))
    else:
        store.set(_choice_key(feature), choice)


def prompt_status(
    store: KeyValueStore,
    feature: str,
    prompt_enabled: bool,
    now: datetime,
    cooldown_days: int | None = None,
) -> PromptStatus:
    """Read the stored cooldown and choice for ``feature`` and apply the gate."""
    if cooldown_days is None:
        cooldown_days = settings.prompt_cooldown_days
    record = load_cooldown(store, feature)
    choice = load_choice(store, feature)
    return PromptStatus(
        feature=feature,
        should_show=should_show(choice, prompt_enabled, record.last_shown_at, cooldown_days, now),
        choice=choice,
        last_shown_at=record.last_shown_at,
        cooldown_days=cooldown_days,
    )


def should_show_prompt(
    store: KeyValueStore,
    feature: str,
    prompt_enabled: bool,
    now: datetime,
    cooldown_days: int | None = None,
) -> bool:
    return prompt_status(store, feature, prompt_enabled, now, cooldown_days).should_show
