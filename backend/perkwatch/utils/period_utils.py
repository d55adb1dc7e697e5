from datetime import date, datetime

from dateutil.relativedelta import relativedelta

from perkwatch.errors import ValidationError


PERIOD_MONTHS = {
    "monthly": 1,
    "quarterly": 3,
    "semi_annual": 6,
    "annual": 12,
}

_CYCLE_CODES = {1: "M", 3: "Q", 6: "H", 12: "A"}


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def period_months(period: str) -> int:
    try:
        return PERIOD_MONTHS[period]
    except KeyError:
        raise ValidationError(f"Unknown period: {period!r}") from None


def expiry_date(period_months: int, anchor: date, now: date | datetime) -> date:
    """Return the next cycle boundary strictly after ``now``.

    Monthly perks reset on the 1st of the next calendar month. Longer periods
    count whole periods from 1 January of the anchor's year, so every card with
    the same period shares the same boundaries no matter when it was added.
    When ``now`` falls exactly on a boundary, the following boundary is returned.
    """
    if period_months not in _CYCLE_CODES:
        raise ValidationError(f"Unsupported period length: {period_months} months")
    today = _as_date(now)

    if period_months == 1:
        return today.replace(day=1) + relativedelta(months=1)

    epoch = date(_as_date(anchor).year, 1, 1)
    months_elapsed = (today.year - epoch.year) * 12 + (today.month - 1)
    periods_elapsed = months_elapsed // period_months
    return epoch + relativedelta(months=(periods_elapsed + 1) * period_months)


def current_period(period_months: int, anchor: date, now: date | datetime) -> tuple[date, date]:
    """Return (period_start, period_end) for the cycle containing ``now``."""
    end_exclusive = expiry_date(period_months, anchor, now)
    start = end_exclusive - relativedelta(months=period_months)
    return start, end_exclusive - relativedelta(days=1)


def cycle_identifier(period_months: int, anchor: date, now: date | datetime) -> str:
    """Name the cycle containing ``now``, e.g. ``2026-M10`` or ``2026-Q4``."""
    start, _ = current_period(period_months, anchor, now)
    index = (start.month - 1) // period_months + 1
    return f"{start.year}-{_CYCLE_CODES[period_months]}{index}"


def days_between(start: date | datetime, end: date | datetime) -> int:
    return (_as_date(end) - _as_date(start)).days


def next_first_of_month(now: date | datetime) -> date:
    return _as_date(now).replace(day=1) + relativedelta(months=1)


def next_anniversary(anniversary: date, now: date | datetime) -> date:
    """Return the first occurrence of ``anniversary`` on or after ``now``."""
    today = _as_date(now)
    if anniversary >= today:
        return anniversary
    # dateutil clamps Feb 29 to Feb 28 in non-leap years
    years = today.year - anniversary.year
    candidate = anniversary + relativedelta(years=years)
    if candidate < today:
        candidate = anniversary + relativedelta(years=years + 1)
    return candidate
