from datetime import date, datetime, timezone

from sqlalchemy import String, Float, Date, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from perkwatch.database import Base


class Perk(Base):
    __tablename__ = "perks"

    id: Mapped[int] = mapped_column(primary_key=True)
    card_id: Mapped[int] = mapped_column(ForeignKey("cards.id"), index=True)
    name: Mapped[str] = mapped_column(String(200))
    value: Mapped[float] = mapped_column(Float)
    period: Mapped[str] = mapped_column(String(20))  # monthly|quarterly|semi_annual|annual
    status: Mapped[str] = mapped_column(String(20), default="available")  # available|partially_redeemed|redeemed
    remaining_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    cycle_anchor: Mapped[date] = mapped_column(Date)
    status_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    card: Mapped["Card"] = relationship(back_populates="perks")  # noqa: F821
