from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perkwatch.database import get_db
from perkwatch.dependencies import get_current_time, get_delivery, get_store
from perkwatch.schemas.reminder import ReconcileResponse, ReminderCandidate
from perkwatch.services.kv_store import KeyValueStore
from perkwatch.services.notification_outbox import DatabaseNotificationOutbox
from perkwatch.services.reminder_service import plan_reminders, refresh_reminders

router = APIRouter(prefix="/api/reminders", tags=["reminders"])


@router.get("/plan", response_model=list[ReminderCandidate])
def get_plan(
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
    now: datetime = Depends(get_current_time),
):
    return plan_reminders(db, store, now)


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_reminders(
    force_immediate: bool = False,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
    delivery: DatabaseNotificationOutbox = Depends(get_delivery),
    now: datetime = Depends(get_current_time),
):
    return await refresh_reminders(db, store, delivery, now, force_immediate=force_immediate)


@router.get("/scheduled")
def list_scheduled(delivery: DatabaseNotificationOutbox = Depends(get_delivery)):
    return [
        {
            "dedupe_key": r.dedupe_key,
            "fire_at": r.fire_at,
            "payload": r.payload,
        }
        for r in delivery.pending()
    ]
