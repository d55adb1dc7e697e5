"""Perk status lifecycle: rollover, urgency classification and transitions.

Everything here is pure. ``now`` is always passed in by the caller and the
input records are never mutated; new records are returned instead.
"""
import logging
import math
from datetime import date, datetime

from perkwatch.errors import ValidationError
from perkwatch.schemas.perk import (
    NormalizedPerks,
    PerkAction,
    PerkRecord,
    PerkTransition,
    ResetCountdown,
    StatusRollover,
    UrgencyInfo,
)
from perkwatch.utils.period_utils import days_between, expiry_date, period_months

logger = logging.getLogger(__name__)


def current_expiry(perk: PerkRecord, now: date | datetime) -> date:
    return expiry_date(period_months(perk.period), perk.cycle_anchor, now)


def _rollover(perk: PerkRecord, now: date | datetime) -> tuple[PerkRecord, StatusRollover | None]:
    if perk.status == "available" or perk.status_changed_at is None:
        return perk, None
    # Boundary of the cycle the status was written in
    boundary = current_expiry(perk, perk.status_changed_at)
    if days_between(boundary, now) < 0:
        return perk, None
    rollover = StatusRollover(
        perk_id=perk.id,
        previous_status=perk.status,
        previous_remaining_value=perk.remaining_value,
        boundary=boundary,
    )
    reset = perk.model_copy(update={
        "status": "available",
        "remaining_value": None,
        "status_changed_at": None,
    })
    return reset, rollover


def normalize_perk(perk: PerkRecord, now: date | datetime) -> PerkRecord:
    """Read a stored perk as of ``now``, resetting a redemption from a past cycle."""
    normalized, _ = _rollover(perk, now)
    return normalized


def normalize_perks(perks: list[PerkRecord], now: date | datetime) -> NormalizedPerks:
    """Normalize a batch and collect the rollovers the caller should persist."""
    normalized = []
    rollovers = []
    for perk in perks:
        current, rollover = _rollover(perk, now)
        normalized.append(current)
        if rollover is not None:
            rollovers.append(rollover)
    if rollovers:
        logger.info("Rolled over %d perk(s) to available", len(rollovers))
    return NormalizedPerks(perks=normalized, rollovers=rollovers)


# --- Classification ---

def urgency_for_days(days_left: int, months: int) -> UrgencyInfo:
    if days_left <= 0:
        return UrgencyInfo(tier="expired", days_left=days_left, label="Expired")
    if days_left <= 3:
        return UrgencyInfo(tier="urgent", days_left=days_left, label=f"{days_left}d left")
    if days_left <= 7:
        return UrgencyInfo(tier="warning", days_left=days_left, label=f"{days_left}d left")
    if days_left <= 30:
        return UrgencyInfo(tier="normal", days_left=days_left, label=f"{days_left}d left")
    if months == 1:
        return UrgencyInfo(tier="monthly", days_left=days_left, label="Monthly")
    return UrgencyInfo(tier="normal", days_left=days_left, label=f"{days_left // 30}mo left")


def reset_countdown_for_days(days_left: int, months: int) -> ResetCountdown:
    if days_left <= 0:
        return ResetCountdown(tier="resetting", days_left=days_left, label="Should reset soon")
    if days_left <= 3:
        return ResetCountdown(tier="urgent", days_left=days_left, label=f"Resets in {days_left}d")
    if days_left <= 7:
        return ResetCountdown(tier="warning", days_left=days_left, label=f"Resets in {days_left}d")
    if days_left <= 30:
        return ResetCountdown(tier="normal", days_left=days_left, label=f"Resets in {days_left}d")
    if months == 1:
        return ResetCountdown(tier="monthly", days_left=days_left, label="Resets monthly")
    return ResetCountdown(tier="normal", days_left=days_left, label=f"Resets in {days_left // 30}mo")


def classify_urgency(perk: PerkRecord, now: date | datetime) -> UrgencyInfo:
    """Time left before an unused perk expires."""
    expires_on = current_expiry(perk, now)
    info = urgency_for_days(days_between(now, expires_on), period_months(perk.period))
    info.expires_on = expires_on
    return info


def classify_reset_countdown(perk: PerkRecord, now: date | datetime) -> ResetCountdown:
    """Time until a redeemed perk becomes available again."""
    anchor_moment = perk.status_changed_at or now
    resets_on = current_expiry(perk, anchor_moment)
    countdown = reset_countdown_for_days(days_between(now, resets_on), period_months(perk.period))
    countdown.resets_on = resets_on
    return countdown


# --- Transitions ---

def _allowed_amount(perk: PerkRecord) -> float:
    if perk.status == "partially_redeemed":
        return perk.remaining_value
    return perk.value


def apply_action(
    perk: PerkRecord,
    action: PerkAction,
    now: datetime,
    amount: float | None = None,
) -> PerkTransition:
    """Single entry point for every status change, whatever the UI trigger.

    The perk is normalized first, so a stale redemption from an earlier cycle
    is reset before the action is applied and the reset is persisted along
    with the action. ``amount=None`` on a log means "log the full amount still
    available this cycle".
    """
    current, rollover = _rollover(perk, now)
    rolled_over = rollover is not None

    if action == "mark_available":
        if current.status == "available":
            return PerkTransition(perk=current, action=action, rolled_over=rolled_over)
        updated = current.model_copy(update={
            "status": "available",
            "remaining_value": None,
            "status_changed_at": None,
        })
        return PerkTransition(perk=updated, action=action, rolled_over=rolled_over)

    if action != "log":
        raise ValidationError(f"Unknown perk action: {action!r}")

    if current.status == "redeemed":
        raise ValidationError("Perk already redeemed this period")

    allowed = _allowed_amount(current)
    if amount is None:
        amount = allowed
    amount = float(amount)
    if not math.isfinite(amount):
        raise ValidationError("Logged amount must be a finite number")
    if amount > allowed:
        raise ValidationError(f"Logged amount {amount:g} exceeds the {allowed:g} still available")
    # Compared unrounded above; cents are stored
    amount = round(amount, 2)
    if amount <= 0:
        raise ValidationError("Logged amount must be greater than zero")

    remaining = round(allowed - amount, 2)
    if remaining <= 0:
        updated = current.model_copy(update={
            "status": "redeemed",
            "remaining_value": None,
            "status_changed_at": now,
        })
    else:
        updated = current.model_copy(update={
            "status": "partially_redeemed",
            "remaining_value": remaining,
            "status_changed_at": now,
        })
    return PerkTransition(perk=updated, action=action, amount_logged=amount, rolled_over=rolled_over)
