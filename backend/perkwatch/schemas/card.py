from datetime import date, datetime

from pydantic import BaseModel, Field


class CardRecord(BaseModel):
    id: int
    card_name: str = ""
    renewal_date: date | None = None
    annual_fee: int | None = None

    model_config = {"from_attributes": True}


class CardCreate(BaseModel):
    card_name: str = Field(min_length=1, max_length=200)
    renewal_date: date | None = None
    annual_fee: int | None = Field(default=None, ge=0)


class CardOut(CardRecord):
    created_at: datetime
