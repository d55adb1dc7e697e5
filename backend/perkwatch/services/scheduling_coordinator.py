"""Reconcile planned reminders with what the delivery collaborator holds.

Per dedupe key: planned but not scheduled is submitted, scheduled but no
longer planned is cancelled, present in both is left alone. Every call is
attempted independently and concurrently; the result list always covers every
key, whatever fails.
"""
import asyncio
import logging
from collections import Counter

from perkwatch.errors import SchedulingError
from perkwatch.schemas.reminder import ReconcileResult, ReminderCandidate
from perkwatch.services.notification_outbox import NotificationDelivery

logger = logging.getLogger(__name__)


async def _submit(delivery: NotificationDelivery, candidate: ReminderCandidate) -> ReconcileResult:
    try:
        delivery_id = await delivery.schedule(
            candidate.dedupe_key, candidate.fire_at, candidate.payload.model_dump()
        )
    except SchedulingError as exc:
        logger.warning("Failed to schedule reminder %s: %s", candidate.dedupe_key, exc)
        return ReconcileResult(key=candidate.dedupe_key, outcome="failed", reason=str(exc))
    except Exception as exc:
        logger.exception("Unexpected error scheduling reminder %s", candidate.dedupe_key)
        return ReconcileResult(key=candidate.dedupe_key, outcome="failed", reason=str(exc) or type(exc).__name__)
    return ReconcileResult(
        key=candidate.dedupe_key,
        outcome="scheduled",
        delivery_id=str(delivery_id) if delivery_id is not None else None,
    )


async def _cancel(delivery: NotificationDelivery, key: str) -> ReconcileResult:
    try:
        await delivery.cancel(key)
    except SchedulingError as exc:
        logger.warning("Failed to cancel reminder %s: %s", key, exc)
        return ReconcileResult(key=key, outcome="failed", reason=str(exc))
    except Exception as exc:
        logger.exception("Unexpected error cancelling reminder %s", key)
        return ReconcileResult(key=key, outcome="failed", reason=str(exc) or type(exc).__name__)
    return ReconcileResult(key=key, outcome="cancelled")


async def reconcile(
    planned: list[ReminderCandidate],
    delivery: NotificationDelivery,
) -> list[ReconcileResult]:
    by_key: dict[str, ReminderCandidate] = {}
    for candidate in planned:
        by_key.setdefault(candidate.dedupe_key, candidate)

    try:
        scheduled = set(await delivery.list_scheduled())
    except Exception as exc:
        logger.warning("Could not list scheduled reminders, nothing reconciled: %s", exc)
        reason = str(exc) or type(exc).__name__
        return [ReconcileResult(key=key, outcome="failed", reason=reason) for key in by_key]

    unchanged = [ReconcileResult(key=key, outcome="unchanged") for key in by_key if key in scheduled]
    tasks = [_submit(delivery, c) for key, c in by_key.items() if key not in scheduled]
    tasks += [_cancel(delivery, key) for key in sorted(scheduled) if key not in by_key]

    results = unchanged + list(await asyncio.gather(*tasks))
    logger.info("Reconciled reminders: %s", summarize(results))
    return results


def summarize(results: list[ReconcileResult]) -> dict[str, int]:
    counts = Counter(r.outcome for r in results)
    return {outcome: counts.get(outcome, 0) for outcome in ("scheduled", "cancelled", "unchanged", "failed")}
