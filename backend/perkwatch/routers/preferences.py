from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError as PydanticValidationError

from perkwatch.dependencies import get_store
from perkwatch.errors import PersistenceError
from perkwatch.schemas.notification_preferences import (
    NotificationPreferences,
    NotificationPreferencesUpdate,
)
from perkwatch.services.kv_store import KeyValueStore
from perkwatch.services.preferences_service import load_preferences, update_preferences

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


@router.get("", response_model=NotificationPreferences)
def get_preferences(store: KeyValueStore = Depends(get_store)):
    return load_preferences(store)


@router.put("", response_model=NotificationPreferences)
def put_preferences(data: NotificationPreferencesUpdate, store: KeyValueStore = Depends(get_store)):
    try:
        return update_preferences(store, data)
    except PydanticValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.errors(include_url=False, include_context=False))
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Preferences could not be saved")
