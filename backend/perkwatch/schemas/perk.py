from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

PerkPeriod = Literal["monthly", "quarterly", "semi_annual", "annual"]
PerkStatus = Literal["available", "partially_redeemed", "redeemed"]
PerkAction = Literal["log", "mark_available"]
UrgencyTier = Literal["expired", "urgent", "warning", "normal", "monthly"]
ResetTier = Literal["resetting", "urgent", "warning", "normal", "monthly"]


class PerkRecord(BaseModel):
    """A stored perk as handed to the engine."""
    id: int
    card_id: int
    name: str = ""
    value: float = Field(gt=0)
    period: PerkPeriod
    status: PerkStatus = "available"
    remaining_value: float | None = None
    cycle_anchor: date
    status_changed_at: datetime | None = None

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_remaining_value(self):
        if self.status == "partially_redeemed":
            if self.remaining_value is None or not 0 < self.remaining_value < self.value:
                raise ValueError("remaining_value must be between 0 and value for a partially redeemed perk")
        elif self.remaining_value is not None:
            if self.remaining_value != self.value:
                raise ValueError("remaining_value is only allowed on a partially redeemed perk")
            self.remaining_value = None
        if self.status != "available" and self.status_changed_at is None:
            raise ValueError("status_changed_at is required once a perk has been redeemed")
        return self


class PerkCreate(BaseModel):
    card_id: int
    name: str = Field(min_length=1, max_length=200)
    value: float = Field(gt=0, le=99_999_999)
    period: PerkPeriod
    cycle_anchor: date | None = None


class PerkLogRequest(BaseModel):
    # None logs the full amount still available this cycle
    amount: float | None = None


class UrgencyInfo(BaseModel):
    tier: UrgencyTier
    days_left: int
    label: str
    expires_on: date | None = None


class ResetCountdown(BaseModel):
    tier: ResetTier
    days_left: int
    label: str
    resets_on: date | None = None


class StatusRollover(BaseModel):
    """A planned mutation: a stale redemption that must be reset to available."""
    perk_id: int
    previous_status: PerkStatus
    previous_remaining_value: float | None = None
    boundary: date


class NormalizedPerks(BaseModel):
    perks: list[PerkRecord]
    rollovers: list[StatusRollover] = []


class PerkTransition(BaseModel):
    perk: PerkRecord
    action: PerkAction
    amount_logged: float | None = None
    rolled_over: bool = False


class PerkOut(PerkRecord):
    """Normalized perk with its display classification."""
    urgency: UrgencyInfo | None = None
    reset_countdown: ResetCountdown | None = None
