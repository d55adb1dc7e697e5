from sqlalchemy.orm import Session

from perkwatch.models.card import Card
from perkwatch.schemas.card import CardCreate


def list_cards(db: Session) -> list[Card]:
    return db.query(Card).order_by(Card.id).all()


def create_card(db: Session, data: CardCreate) -> Card:
    card = Card(
        card_name=data.card_name,
        renewal_date=data.renewal_date,
        annual_fee=data.annual_fee,
    )
    db.add(card)
    db.commit()
    db.refresh(card)
    return card
