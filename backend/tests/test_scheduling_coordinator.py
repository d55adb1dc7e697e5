import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from perkwatch.errors import SchedulingError
from perkwatch.schemas.reminder import ReminderCandidate, ReminderPayload
from perkwatch.services.notification_outbox import DatabaseNotificationOutbox
from perkwatch.services.scheduling_coordinator import reconcile, summarize

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _candidate(key, hours=1):
    return ReminderCandidate(
        dedupe_key=key,
        category="perk_expiry",
        reminder_type="perk_expiry:7d",
        entity_id="perk:1",
        cycle_id="2026-M3",
        fire_at=NOW + timedelta(hours=hours),
        payload=ReminderPayload(title=f"Reminder {key}", body="Use it"),
    )


def _outcomes(results):
    return {r.key: r.outcome for r in results}


# --- Reconcile with a fake delivery backend ---

def test_schedules_everything_when_nothing_pending(fake_delivery):
    delivery = fake_delivery()
    results = asyncio.run(reconcile([_candidate("a"), _candidate("b")], delivery))
    assert _outcomes(results) == {"a": "scheduled", "b": "scheduled"}
    assert set(delivery.scheduled) == {"a", "b"}
    assert all(r.delivery_id for r in results)


def test_second_reconcile_schedules_nothing(fake_delivery):
    delivery = fake_delivery()
    planned = [_candidate("a"), _candidate("b")]
    asyncio.run(reconcile(planned, delivery))
    delivery.calls.clear()

    results = asyncio.run(reconcile(planned, delivery))

    assert summarize(results) == {"scheduled": 0, "cancelled": 0, "unchanged": 2, "failed": 0}
    assert delivery.calls == []


def test_stale_keys_are_cancelled(fake_delivery):
    delivery = fake_delivery(scheduled=["a", "old"])
    results = asyncio.run(reconcile([_candidate("a"), _candidate("b")], delivery))
    assert _outcomes(results) == {"a": "unchanged", "b": "scheduled", "old": "cancelled"}
    assert set(delivery.scheduled) == {"a", "b"}


def test_empty_plan_cancels_everything(fake_delivery):
    delivery = fake_delivery(scheduled=["x", "y"])
    results = asyncio.run(reconcile([], delivery))
    assert _outcomes(results) == {"x": "cancelled", "y": "cancelled"}


def test_one_failure_does_not_stop_the_rest(fake_delivery):
    delivery = fake_delivery(scheduled=["old"], fail_schedule=["b"], fail_cancel=["old"])
    results = asyncio.run(reconcile([_candidate("a"), _candidate("b"), _candidate("c")], delivery))
    outcomes = _outcomes(results)
    assert outcomes == {"a": "scheduled", "b": "failed", "c": "scheduled", "old": "failed"}
    failed = {r.key: r.reason for r in results if r.outcome == "failed"}
    assert failed["b"] == "rejected by delivery backend"
    assert failed["old"] == "cancel rejected"


def test_unexpected_exception_is_recorded(fake_delivery):
    delivery = fake_delivery(crash_on=["a"])
    results = asyncio.run(reconcile([_candidate("a"), _candidate("b")], delivery))
    assert _outcomes(results) == {"a": "failed", "b": "scheduled"}
    assert "crashed" in next(r.reason for r in results if r.key == "a")


def test_listing_failure_fails_every_planned_key(fake_delivery):
    delivery = fake_delivery(fail_list=True)
    results = asyncio.run(reconcile([_candidate("a"), _candidate("b")], delivery))
    assert _outcomes(results) == {"a": "failed", "b": "failed"}
    assert delivery.calls == []


def test_duplicate_planned_keys_collapse(fake_delivery):
    delivery = fake_delivery()
    results = asyncio.run(reconcile([_candidate("a"), _candidate("a", hours=2)], delivery))
    assert len(results) == 1
    assert delivery.calls == [("schedule", "a")]


def test_summarize_counts_every_outcome():
    from perkwatch.schemas.reminder import ReconcileResult

    results = [
        ReconcileResult(key="a", outcome="scheduled"),
        ReconcileResult(key="b", outcome="scheduled"),
        ReconcileResult(key="c", outcome="failed", reason="boom"),
    ]
    assert summarize(results) == {"scheduled": 2, "cancelled": 0, "unchanged": 0, "failed": 1}


# --- Database outbox ---

def test_outbox_schedule_list_cancel(db_session):
    outbox = DatabaseNotificationOutbox(db_session)
    delivery_id = asyncio.run(outbox.schedule("a", NOW, {"title": "Hi"}))
    assert delivery_id
    assert asyncio.run(outbox.list_scheduled()) == ["a"]

    asyncio.run(outbox.cancel("a"))
    assert asyncio.run(outbox.list_scheduled()) == []


def test_outbox_rejects_double_schedule(db_session):
    outbox = DatabaseNotificationOutbox(db_session)
    asyncio.run(outbox.schedule("a", NOW, {}))
    with pytest.raises(SchedulingError):
        asyncio.run(outbox.schedule("a", NOW, {}))


def test_outbox_reschedules_cancelled_key(db_session):
    outbox = DatabaseNotificationOutbox(db_session)
    first_id = asyncio.run(outbox.schedule("a", NOW, {"v": 1}))
    asyncio.run(outbox.cancel("a"))
    second_id = asyncio.run(outbox.schedule("a", NOW + timedelta(days=1), {"v": 2}))
    assert first_id == second_id
    [row] = outbox.pending()
    assert row.payload == {"v": 2}


def test_outbox_cancel_unknown_key(db_session):
    outbox = DatabaseNotificationOutbox(db_session)
    with pytest.raises(SchedulingError):
        asyncio.run(outbox.cancel("missing"))


def test_reconcile_against_outbox(db_session):
    outbox = DatabaseNotificationOutbox(db_session)
    planned = [_candidate("a"), _candidate("b", hours=3)]
    asyncio.run(reconcile(planned, outbox))
    results = asyncio.run(reconcile(planned[:1], outbox))
    assert _outcomes(results) == {"a": "unchanged", "b": "cancelled"}
    assert [r.dedupe_key for r in outbox.pending()] == ["a"]
