import logging
from datetime import datetime

from sqlalchemy.orm import Session

from perkwatch.models.card import Card
from perkwatch.schemas.card import CardRecord
from perkwatch.schemas.reminder import EntitySnapshot, ReconcileResponse, ReminderCandidate
from perkwatch.services.kv_store import KeyValueStore
from perkwatch.services.notification_outbox import NotificationDelivery
from perkwatch.services.perk_service import load_perk_records
from perkwatch.services.preferences_service import load_preferences
from perkwatch.services.reminder_planner import plan
from perkwatch.services.scheduling_coordinator import reconcile, summarize

logger = logging.getLogger(__name__)


def load_snapshot(db: Session, now: datetime) -> EntitySnapshot:
    cards = db.query(Card).order_by(Card.id).all()
    return EntitySnapshot(
        perks=load_perk_records(db, now),
        cards=[CardRecord.model_validate(c) for c in cards],
    )


def plan_reminders(
    db: Session,
    store: KeyValueStore,
    now: datetime,
    force_immediate: bool = False,
) -> list[ReminderCandidate]:
    snapshot = load_snapshot(db, now)
    return plan(snapshot, load_preferences(store), now, force_immediate=force_immediate)


async def refresh_reminders(
    db: Session,
    store: KeyValueStore,
    delivery: NotificationDelivery,
    now: datetime,
    force_immediate: bool = False,
) -> ReconcileResponse:
    """Normalize perks, plan the current reminders and reconcile them with delivery."""
    candidates = plan_reminders(db, store, now, force_immediate=force_immediate)
    results = await reconcile(candidates, delivery)
    summary = summarize(results)
    if summary["failed"]:
        logger.warning("%d reminder(s) could not be reconciled", summary["failed"])
    return ReconcileResponse(results=results, summary=summary)
