import zoneinfo
from datetime import datetime, tzinfo

from sqlalchemy.orm import Session

from perkwatch.config import settings


def _resolve_tz(name: str | None) -> tzinfo | None:
    if not name:
        return None
    try:
        return zoneinfo.ZoneInfo(name)
    except (KeyError, ValueError, zoneinfo.ZoneInfoNotFoundError):
        return None


def get_now(db: Session | None = None) -> datetime:
    """Current local time in the configured timezone.

    A ``timezone`` row in the settings table wins over the TIMEZONE environment
    setting; with neither, the system local zone is used.
    """
    if db is not None:
        from perkwatch.models.setting import Setting
        tz_setting = db.get(Setting, "timezone")
        tz = _resolve_tz(tz_setting.value if tz_setting else None)
        if tz is not None:
            return datetime.now(tz)

    tz = _resolve_tz(settings.timezone)
    if tz is not None:
        return datetime.now(tz)

    return datetime.now().astimezone()
