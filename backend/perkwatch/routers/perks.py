from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from perkwatch.database import get_db
from perkwatch.dependencies import get_current_time
from perkwatch.errors import ValidationError
from perkwatch.models.card import Card
from perkwatch.models.perk import Perk
from perkwatch.schemas.perk import PerkCreate, PerkLogRequest, PerkOut
from perkwatch.services.perk_service import change_status, create_perk, list_perks

router = APIRouter(prefix="/api/perks", tags=["perks"])


def _get_perk(perk_id: int, db: Session) -> Perk:
    perk = db.get(Perk, perk_id)
    if not perk:
        raise HTTPException(status_code=404, detail="Perk not found")
    return perk


@router.get("", response_model=list[PerkOut])
def list_perks_endpoint(
    card_id: int | None = None,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_current_time),
):
    return list_perks(db, now, card_id=card_id)


@router.post("", response_model=PerkOut, status_code=201)
def create_perk_endpoint(
    data: PerkCreate,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_current_time),
):
    if not db.get(Card, data.card_id):
        raise HTTPException(status_code=404, detail="Card not found")
    return create_perk(db, data, now)


@router.post("/{perk_id}/log", response_model=PerkOut)
def log_perk_endpoint(
    perk_id: int,
    data: PerkLogRequest,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_current_time),
):
    perk = _get_perk(perk_id, db)
    try:
        return change_status(db, perk, "log", now, amount=data.amount)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/{perk_id}/mark-available", response_model=PerkOut)
def mark_available_endpoint(
    perk_id: int,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_current_time),
):
    perk = _get_perk(perk_id, db)
    return change_status(db, perk, "mark_available", now)
