from datetime import datetime

from sqlalchemy.orm import Session

from perkwatch.models.perk import Perk
from perkwatch.schemas.perk import PerkAction, PerkCreate, PerkOut, PerkRecord, StatusRollover
from perkwatch.services.perk_lifecycle import (
    apply_action,
    classify_reset_countdown,
    classify_urgency,
    normalize_perks,
)


def _to_record(perk: Perk) -> PerkRecord:
    return PerkRecord.model_validate(perk)


def _write_back(perk: Perk, record: PerkRecord) -> None:
    perk.status = record.status
    perk.remaining_value = record.remaining_value
    perk.status_changed_at = record.status_changed_at


def perk_to_out(record: PerkRecord, now: datetime) -> PerkOut:
    """Attach the urgency (unused perks) or reset countdown (redeemed perks)."""
    out = PerkOut(**record.model_dump())
    if record.status == "redeemed":
        out.reset_countdown = classify_reset_countdown(record, now)
    else:
        out.urgency = classify_urgency(record, now)
    return out


def apply_rollovers(db: Session, rollovers: list[StatusRollover]) -> int:
    """Persist planned rollovers; returns how many rows were reset."""
    if not rollovers:
        return 0
    rows = db.query(Perk).filter(Perk.id.in_([r.perk_id for r in rollovers])).all()
    for row in rows:
        row.status = "available"
        row.remaining_value = None
        row.status_changed_at = None
    db.commit()
    return len(rows)


def load_perk_records(db: Session, now: datetime) -> list[PerkRecord]:
    """Load every perk normalized as of ``now``, persisting any rollovers."""
    rows = db.query(Perk).order_by(Perk.id).all()
    normalized = normalize_perks([_to_record(p) for p in rows], now)
    apply_rollovers(db, normalized.rollovers)
    return normalized.perks


def list_perks(db: Session, now: datetime, card_id: int | None = None) -> list[PerkOut]:
    records = load_perk_records(db, now)
    if card_id is not None:
        records = [r for r in records if r.card_id == card_id]
    return [perk_to_out(r, now) for r in records]


def create_perk(db: Session, data: PerkCreate, now: datetime) -> PerkOut:
    perk = Perk(
        card_id=data.card_id,
        name=data.name,
        value=data.value,
        period=data.period,
        status="available",
        cycle_anchor=data.cycle_anchor or now.date(),
    )
    db.add(perk)
    db.commit()
    db.refresh(perk)
    return perk_to_out(_to_record(perk), now)


def change_status(
    db: Session,
    perk: Perk,
    action: PerkAction,
    now: datetime,
    amount: float | None = None,
) -> PerkOut:
    """Run a lifecycle action and persist the result (including any rollover)."""
    transition = apply_action(_to_record(perk), action, now, amount)
    _write_back(perk, transition.perk)
    db.commit()
    db.refresh(perk)
    return perk_to_out(transition.perk, now)
