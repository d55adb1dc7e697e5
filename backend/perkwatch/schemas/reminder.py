from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from perkwatch.schemas.card import CardRecord
from perkwatch.schemas.perk import PerkRecord

ReminderCategory = Literal["perk_expiry", "card_renewal", "first_of_month", "perk_reset"]
ReconcileOutcome = Literal["scheduled", "cancelled", "unchanged", "failed"]


class EntitySnapshot(BaseModel):
    """Read-only view of the user's perks and cards at call time."""
    perks: list[PerkRecord] = []
    cards: list[CardRecord] = []


class ReminderPayload(BaseModel):
    title: str
    body: str
    data: dict[str, Any] = Field(default_factory=dict)


class ReminderCandidate(BaseModel):
    dedupe_key: str
    category: ReminderCategory
    reminder_type: str
    entity_id: str
    cycle_id: str
    fire_at: datetime
    payload: ReminderPayload


class ReconcileResult(BaseModel):
    key: str
    outcome: ReconcileOutcome
    reason: str | None = None
    delivery_id: str | None = None


class ReconcileResponse(BaseModel):
    results: list[ReconcileResult]
    summary: dict[str, int]
