from datetime import datetime

from fastapi import Depends
from sqlalchemy.orm import Session

from perkwatch.database import get_db
from perkwatch.services.kv_store import DatabaseKeyValueStore
from perkwatch.services.notification_outbox import DatabaseNotificationOutbox
from perkwatch.utils.timezone import get_now


def get_store(db: Session = Depends(get_db)) -> DatabaseKeyValueStore:
    return DatabaseKeyValueStore(db)


def get_delivery(db: Session = Depends(get_db)) -> DatabaseNotificationOutbox:
    return DatabaseNotificationOutbox(db)


def get_current_time(db: Session = Depends(get_db)) -> datetime:
    """The only place the HTTP layer reads the clock."""
    return get_now(db)
