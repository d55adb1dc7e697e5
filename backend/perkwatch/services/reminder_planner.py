"""Compute the reminders that should be pending right now.

Planning is pure: the same snapshot, preferences and ``now`` always produce
the same candidates with the same dedupe keys, so a re-plan after a restart or
a preference change only yields new keys for genuinely new cycles.
"""
import hashlib
import logging
from datetime import date, datetime, time, timedelta

from perkwatch.config import settings
from perkwatch.schemas.card import CardRecord
from perkwatch.schemas.notification_preferences import NotificationPreferences
from perkwatch.schemas.perk import PerkRecord
from perkwatch.schemas.reminder import EntitySnapshot, ReminderCandidate, ReminderPayload
from perkwatch.services.perk_lifecycle import normalize_perks
from perkwatch.utils.period_utils import (
    cycle_identifier,
    expiry_date,
    next_anniversary,
    next_first_of_month,
    period_months,
)

logger = logging.getLogger(__name__)

_PERIOD_LABELS = {1: "monthly", 3: "quarterly", 6: "semi-annual", 12: "annual"}

_RENEWAL_TITLES = {
    90: "Card Review Time",
    30: "Annual Fee Coming Up",
    7: "Annual Fee Next Week",
    1: "Annual Fee Tomorrow",
}


def dedupe_key(entity_id: str, reminder_type: str, cycle_id: str) -> str:
    raw = f"{entity_id}|{reminder_type}|{cycle_id}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:32]


def _money(amount: float) -> str:
    if float(amount).is_integer():
        return f"${int(amount)}"
    return f"${amount:.2f}"


def _short_date(day: date) -> str:
    return f"{day:%b} {day.day}"


def _at(day: date, at: time, now: datetime) -> datetime:
    """Local timestamp for ``day`` at ``at`` in the caller's timezone."""
    return datetime.combine(day, at.replace(tzinfo=None), tzinfo=now.tzinfo)


def _pick_next(
    options: list[tuple[datetime, int]],
    now: datetime,
    force_immediate: bool,
    immediate_delay: timedelta,
) -> tuple[datetime, int] | None:
    """Keep only the next upcoming reminder of a cycle.

    Past reminders are dropped; with ``force_immediate`` the most recently
    missed one is retimed to fire shortly after ``now`` instead.
    """
    upcoming = [option for option in options if option[0] > now]
    if upcoming:
        return min(upcoming)
    if force_immediate and options:
        _, offset = max(options)
        return now + immediate_delay, offset
    return None


def _candidate(
    category: str,
    entity_id: str,
    reminder_type: str,
    cycle_id: str,
    fire_at: datetime,
    payload: ReminderPayload,
) -> ReminderCandidate:
    return ReminderCandidate(
        dedupe_key=dedupe_key(entity_id, reminder_type, cycle_id),
        category=category,
        reminder_type=reminder_type,
        entity_id=entity_id,
        cycle_id=cycle_id,
        fire_at=fire_at,
        payload=payload,
    )


def plan_perk_expiry(
    perk: PerkRecord,
    card: CardRecord | None,
    preferences: NotificationPreferences,
    now: datetime,
    force_immediate: bool = False,
    immediate_delay: timedelta = timedelta(0),
) -> ReminderCandidate | None:
    if perk.status == "redeemed":
        return None
    months = period_months(perk.period)
    if not preferences.perk_expiry_enabled(months):
        return None

    expires_on = expiry_date(months, perk.cycle_anchor, now)
    options = [
        (_at(expires_on - timedelta(days=offset), preferences.perk_expiry_reminder_time, now), offset)
        for offset in preferences.perk_expiry_offsets(months)
    ]
    chosen = _pick_next(options, now, force_immediate, immediate_delay)
    if chosen is None:
        return None
    fire_at, offset = chosen

    value = perk.remaining_value if perk.status == "partially_redeemed" else perk.value
    name = perk.name or "perk"
    days_text = "1 day" if offset == 1 else f"{offset} days"
    payload = ReminderPayload(
        title=f"{name} expires in {days_text}",
        body=(
            f"You still have {_money(value)} of your {_PERIOD_LABELS[months]} {name} credit"
            f"{f' on {card.card_name}' if card and card.card_name else ''}. "
            f"Use it before {_short_date(expires_on)}."
        ),
        data={
            "perk_id": perk.id,
            "card_id": perk.card_id,
            "days_before": offset,
            "expires_on": expires_on.isoformat(),
            "value": value,
        },
    )
    return _candidate(
        "perk_expiry",
        f"perk:{perk.id}",
        f"perk_expiry:{offset}d",
        cycle_identifier(months, perk.cycle_anchor, now),
        fire_at,
        payload,
    )


def plan_card_renewal(
    card: CardRecord,
    preferences: NotificationPreferences,
    now: datetime,
    force_immediate: bool = False,
    immediate_delay: timedelta = timedelta(0),
) -> ReminderCandidate | None:
    if not preferences.renewal_reminders_enabled or card.renewal_date is None:
        return None

    renews_on = next_anniversary(card.renewal_date, now)
    options = [
        (_at(renews_on - timedelta(days=offset), preferences.renewal_reminder_time, now), offset)
        for offset in preferences.renewal_reminder_days
    ]
    chosen = _pick_next(options, now, force_immediate, immediate_delay)
    if chosen is None:
        return None
    fire_at, offset = chosen

    fee = f" ({_money(card.annual_fee)})" if card.annual_fee else ""
    payload = ReminderPayload(
        title=_RENEWAL_TITLES.get(offset, "Annual Fee Reminder"),
        body=f"Your {card.card_name or 'card'} annual fee{fee} is due on {_short_date(renews_on)}.",
        data={
            "card_id": card.id,
            "days_before": offset,
            "renews_on": renews_on.isoformat(),
        },
    )
    return _candidate(
        "card_renewal",
        f"card:{card.id}",
        f"card_renewal:{offset}d",
        renews_on.isoformat(),
        fire_at,
        payload,
    )


def plan_first_of_month(
    perks: list[PerkRecord],
    preferences: NotificationPreferences,
    now: datetime,
) -> ReminderCandidate | None:
    if not preferences.first_of_month_reminders_enabled:
        return None
    monthly = [p for p in perks if period_months(p.period) == 1]
    if not monthly:
        return None

    first = next_first_of_month(now)
    total = sum(p.value for p in monthly)
    payload = ReminderPayload(
        title="New Month, Fresh Benefits!",
        body=(
            f"Your {len(monthly)} monthly perk{'s' if len(monthly) != 1 else ''} worth {_money(total)} "
            f"have reset. Plan how to use them this month!"
        ),
        data={"monthly_perk_count": len(monthly), "total_value": total},
    )
    return _candidate(
        "first_of_month",
        "user",
        "first_of_month",
        f"{first:%Y-%m}",
        _at(first, preferences.first_of_month_reminder_time, now),
        payload,
    )


def plan_perk_reset(
    perk: PerkRecord,
    preferences: NotificationPreferences,
    now: datetime,
) -> ReminderCandidate | None:
    if not preferences.perk_reset_confirmation_enabled:
        return None
    months = period_months(perk.period)
    resets_on = expiry_date(months, perk.cycle_anchor, now)
    name = perk.name or "perk"
    payload = ReminderPayload(
        title=f"Your {name} benefit has reset!",
        body=f"Your {_PERIOD_LABELS[months]} {name} credit worth {_money(perk.value)} is available again.",
        data={"perk_id": perk.id, "card_id": perk.card_id, "resets_on": resets_on.isoformat()},
    )
    return _candidate(
        "perk_reset",
        f"perk:{perk.id}",
        "perk_reset",
        cycle_identifier(months, perk.cycle_anchor, now),
        _at(resets_on, time(0, 0), now),
        payload,
    )


def plan(
    snapshot: EntitySnapshot,
    preferences: NotificationPreferences,
    now: datetime,
    force_immediate: bool = False,
) -> list[ReminderCandidate]:
    """Return every reminder that should be pending for the current cycles.

    Candidates firing at or before ``now`` are dropped, never fired as a
    backfill. ``force_immediate`` exists for debug tooling only and must be
    passed explicitly.
    """
    immediate_delay = timedelta(seconds=settings.force_immediate_delay_seconds)
    perks = normalize_perks(snapshot.perks, now).perks
    cards_by_id = {card.id: card for card in snapshot.cards}

    candidates: list[ReminderCandidate] = []
    for perk in perks:
        expiry = plan_perk_expiry(
            perk, cards_by_id.get(perk.card_id), preferences, now, force_immediate, immediate_delay
        )
        if expiry is not None:
            candidates.append(expiry)
        reset = plan_perk_reset(perk, preferences, now)
        if reset is not None:
            candidates.append(reset)

    for card in snapshot.cards:
        renewal = plan_card_renewal(card, preferences, now, force_immediate, immediate_delay)
        if renewal is not None:
            candidates.append(renewal)

    digest = plan_first_of_month(perks, preferences, now)
    if digest is not None:
        candidates.append(digest)

    candidates = [c for c in candidates if c.fire_at > now]
    candidates.sort(key=lambda c: (c.fire_at, c.dedupe_key))
    logger.debug("Planned %d reminder(s) for %d perk(s) and %d card(s)", len(candidates), len(perks), len(snapshot.cards))
    return candidates
