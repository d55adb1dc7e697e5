from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from perkwatch.database import Base


class ScheduledReminder(Base):
    __tablename__ = "scheduled_reminders"

    id: Mapped[int] = mapped_column(primary_key=True)
    # One row per key; a cancelled row is reused when the key is scheduled again
    dedupe_key: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    fire_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    payload: Mapped[dict] = mapped_column(JSON)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending|cancelled
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
