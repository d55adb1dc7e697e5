from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from perkwatch.database import get_db
from perkwatch.schemas.card import CardCreate, CardOut
from perkwatch.services.card_service import create_card, list_cards

router = APIRouter(prefix="/api/cards", tags=["cards"])


@router.get("", response_model=list[CardOut])
def list_cards_endpoint(db: Session = Depends(get_db)):
    return list_cards(db)


@router.post("", response_model=CardOut, status_code=201)
def create_card_endpoint(data: CardCreate, db: Session = Depends(get_db)):
    return create_card(db, data)
