"""Notification-delivery collaborator.

The engine only hands reminders over; a push worker (outside this package)
delivers pending rows from the outbox when they come due.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from perkwatch.errors import SchedulingError
from perkwatch.models.scheduled_reminder import ScheduledReminder

logger = logging.getLogger(__name__)


class NotificationDelivery(Protocol):
    """Minimal protocol for scheduling reminders with a delivery backend."""

    async def schedule(self, dedupe_key: str, fire_at: datetime, payload: dict[str, Any]) -> str:
        ...

    async def cancel(self, dedupe_key: str) -> None:
        ...

    async def list_scheduled(self) -> list[str]:
        ...


class DatabaseNotificationOutbox:
    """Outbox stored in ``scheduled_reminders``; at most one pending row per key."""

    def __init__(self, db: Session):
        self._db = db

    def _get(self, dedupe_key: str) -> ScheduledReminder | None:
        return (
            self._db.query(ScheduledReminder)
            .filter(ScheduledReminder.dedupe_key == dedupe_key)
            .first()
        )

    async def schedule(self, dedupe_key: str, fire_at: datetime, payload: dict[str, Any]) -> str:
        try:
            row = self._get(dedupe_key)
            if row is not None and row.status == "pending":
                raise SchedulingError(f"Reminder {dedupe_key} is already scheduled")
            if row is None:
                row = ScheduledReminder(dedupe_key=dedupe_key, fire_at=fire_at, payload=payload)
                self._db.add(row)
            else:
                row.fire_at = fire_at
                row.payload = payload
                row.status = "pending"
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise SchedulingError(f"Could not schedule {dedupe_key}: {exc}") from exc
        return str(row.id)

    async def cancel(self, dedupe_key: str) -> None:
        try:
            row = self._get(dedupe_key)
            if row is None or row.status != "pending":
                raise SchedulingError(f"Reminder {dedupe_key} is not scheduled")
            row.status = "cancelled"
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise SchedulingError(f"Could not cancel {dedupe_key}: {exc}") from exc

    async def list_scheduled(self) -> list[str]:
        try:
            rows = (
                self._db.query(ScheduledReminder.dedupe_key)
                .filter(ScheduledReminder.status == "pending")
                .all()
            )
        except SQLAlchemyError as exc:
            raise SchedulingError(f"Could not list scheduled reminders: {exc}") from exc
        return [key for (key,) in rows]

    def pending(self) -> list[ScheduledReminder]:
        return (
            self._db.query(ScheduledReminder)
            .filter(ScheduledReminder.status == "pending")
            .order_by(ScheduledReminder.fire_at, ScheduledReminder.dedupe_key)
            .all()
        )
