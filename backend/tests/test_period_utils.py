from datetime import date, datetime, timedelta

import pytest

from perkwatch.errors import ValidationError
from perkwatch.utils.period_utils import (
    current_period,
    cycle_identifier,
    expiry_date,
    next_anniversary,
    next_first_of_month,
    period_months,
)

ANCHOR = date(2024, 6, 10)


# --- Monthly ---

def test_monthly_mid_month():
    assert expiry_date(1, ANCHOR, date(2026, 3, 15)) == date(2026, 4, 1)


def test_monthly_on_first_returns_next_month():
    assert expiry_date(1, ANCHOR, date(2026, 4, 1)) == date(2026, 5, 1)


def test_monthly_year_end():
    assert expiry_date(1, ANCHOR, date(2026, 12, 31)) == date(2027, 1, 1)


def test_monthly_leap_day():
    assert expiry_date(1, ANCHOR, date(2024, 2, 29)) == date(2024, 3, 1)


def test_monthly_accepts_datetime():
    assert expiry_date(1, ANCHOR, datetime(2026, 1, 31, 23, 59)) == date(2026, 2, 1)


# --- Quarterly ---

def test_quarterly_q1():
    assert expiry_date(3, ANCHOR, date(2026, 2, 15)) == date(2026, 4, 1)


def test_quarterly_on_boundary_returns_next_boundary():
    assert expiry_date(3, ANCHOR, date(2026, 4, 1)) == date(2026, 7, 1)


def test_quarterly_q4():
    assert expiry_date(3, ANCHOR, date(2026, 12, 1)) == date(2027, 1, 1)


def test_quarterly_shared_across_anchors():
    today = date(2026, 8, 20)
    assert expiry_date(3, date(2019, 11, 3), today) == expiry_date(3, date(2026, 8, 1), today)


def test_quarterly_anchor_after_now():
    assert expiry_date(3, date(2027, 5, 1), date(2026, 8, 10)) == date(2026, 10, 1)


# --- Semi-annual ---

def test_semi_annual_h1_last_day():
    assert expiry_date(6, ANCHOR, date(2026, 6, 30)) == date(2026, 7, 1)


def test_semi_annual_h2_first_day():
    assert expiry_date(6, ANCHOR, date(2026, 7, 1)) == date(2027, 1, 1)


# --- Annual ---

def test_annual_new_years_day():
    assert expiry_date(12, ANCHOR, date(2026, 1, 1)) == date(2027, 1, 1)


def test_annual_new_years_eve():
    assert expiry_date(12, ANCHOR, date(2026, 12, 31)) == date(2027, 1, 1)


# --- Invalid periods ---

def test_unsupported_period_length():
    with pytest.raises(ValidationError):
        expiry_date(2, ANCHOR, date(2026, 1, 1))


def test_unknown_period_name():
    with pytest.raises(ValidationError):
        period_months("weekly")


def test_period_months_mapping():
    assert [period_months(p) for p in ("monthly", "quarterly", "semi_annual", "annual")] == [1, 3, 6, 12]


# --- Properties over a leap year ---

@pytest.mark.parametrize("months", [1, 3, 6, 12])
def test_expiry_always_after_today(months):
    day = date(2024, 1, 1)
    while day.year == 2024:
        expires = expiry_date(months, ANCHOR, day)
        assert expires > day
        assert expires.day == 1
        day += timedelta(days=1)


# --- Current period and cycle names ---

def test_current_period_quarterly():
    assert current_period(3, ANCHOR, date(2026, 5, 20)) == (date(2026, 4, 1), date(2026, 6, 30))


def test_current_period_monthly_february():
    assert current_period(1, ANCHOR, date(2026, 2, 10)) == (date(2026, 2, 1), date(2026, 2, 28))


def test_cycle_identifiers():
    today = date(2026, 10, 19)
    assert cycle_identifier(1, ANCHOR, today) == "2026-M10"
    assert cycle_identifier(3, ANCHOR, today) == "2026-Q4"
    assert cycle_identifier(6, ANCHOR, today) == "2026-H2"
    assert cycle_identifier(12, ANCHOR, today) == "2026-A1"


def test_cycle_identifier_changes_on_boundary():
    assert cycle_identifier(3, ANCHOR, date(2026, 3, 31)) == "2026-Q1"
    assert cycle_identifier(3, ANCHOR, date(2026, 4, 1)) == "2026-Q2"


# --- First of month and anniversaries ---

def test_next_first_of_month_on_first():
    assert next_first_of_month(date(2026, 11, 1)) == date(2026, 12, 1)


def test_next_anniversary_later_this_year():
    assert next_anniversary(date(2020, 11, 23), date(2026, 10, 19)) == date(2026, 11, 23)


def test_next_anniversary_already_passed():
    assert next_anniversary(date(2020, 3, 1), date(2026, 10, 19)) == date(2027, 3, 1)


def test_next_anniversary_today():
    assert next_anniversary(date(2020, 10, 19), date(2026, 10, 19)) == date(2026, 10, 19)


def test_next_anniversary_future_date_kept():
    assert next_anniversary(date(2027, 1, 5), date(2026, 10, 19)) == date(2027, 1, 5)


def test_next_anniversary_leap_day():
    # dateutil clamps Feb 29 to Feb 28 in non-leap years
    assert next_anniversary(date(2024, 2, 29), date(2025, 1, 10)) == date(2025, 2, 28)
