from datetime import datetime
from typing import Literal

from pydantic import BaseModel

PromptChoice = Literal["enable", "declined", "later"]


class CooldownRecord(BaseModel):
    key: str
    last_shown_at: datetime | None = None


class PromptChoiceUpdate(BaseModel):
    choice: PromptChoice | None


class PromptStatus(BaseModel):
    feature: str
    should_show: bool
    choice: PromptChoice | None = None
    last_shown_at: datetime | None = None
    cooldown_days: int
