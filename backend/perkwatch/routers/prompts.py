from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path

from perkwatch.dependencies import get_current_time, get_store
from perkwatch.errors import PersistenceError
from perkwatch.schemas.cooldown import CooldownRecord, PromptChoiceUpdate, PromptStatus
from perkwatch.services.cooldown import prompt_status, record_shown, save_choice
from perkwatch.services.kv_store import KeyValueStore

router = APIRouter(prefix="/api/prompts", tags=["prompts"])

Feature = Annotated[str, Path(min_length=1, max_length=60, pattern=r"^[a-z0-9_\-]+$")]


@router.get("/{feature}", response_model=PromptStatus)
def get_prompt_status(
    feature: Feature,
    enabled: bool = True,
    cooldown_days: int | None = None,
    store: KeyValueStore = Depends(get_store),
    now: datetime = Depends(get_current_time),
):
    return prompt_status(store, feature, enabled, now, cooldown_days)


@router.post("/{feature}/shown", response_model=CooldownRecord)
def mark_prompt_shown(
    feature: Feature,
    store: KeyValueStore = Depends(get_store),
    now: datetime = Depends(get_current_time),
):
    try:
        return record_shown(store, feature, now)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Prompt state could not be saved")


@router.put("/{feature}/choice", response_model=PromptStatus)
def set_prompt_choice(
    data: PromptChoiceUpdate,
    feature: Feature,
    store: KeyValueStore = Depends(get_store),
    now: datetime = Depends(get_current_time),
):
    try:
        save_choice(store, feature, data.choice)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Prompt state could not be saved")
    return prompt_status(store, feature, True, now)
