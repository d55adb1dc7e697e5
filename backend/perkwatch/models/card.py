from datetime import date, datetime, timezone

from sqlalchemy import String, Integer, Date, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from perkwatch.database import Base


class Card(Base):
    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(primary_key=True)
    card_name: Mapped[str] = mapped_column(String(200))
    renewal_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    annual_fee: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime.now(timezone.utc)
    )

    perks: Mapped[list["Perk"]] = relationship(back_populates="card", cascade="all, delete-orphan")  # noqa: F821
