from datetime import time

from pydantic import BaseModel, Field, field_validator

ReminderOffsets = list[int]


def _clean_offsets(offsets: list[int]) -> list[int]:
    if any(day < 0 for day in offsets):
        raise ValueError("Reminder offsets must be zero or more days")
    return sorted(set(offsets), reverse=True)


class NotificationPreferences(BaseModel):
    # Every category is enabled unless the user turned it off
    perk_expiry_reminders_enabled: bool = True  # monthly perks
    quarterly_perk_reminders_enabled: bool = True
    semi_annual_perk_reminders_enabled: bool = True
    annual_perk_reminders_enabled: bool = True
    renewal_reminders_enabled: bool = True
    first_of_month_reminders_enabled: bool = True
    perk_reset_confirmation_enabled: bool = True

    monthly_perk_expiry_reminder_days: ReminderOffsets = Field(default_factory=lambda: [7, 3, 1])
    quarterly_perk_expiry_reminder_days: ReminderOffsets = Field(default_factory=lambda: [14, 7])
    semi_annual_perk_expiry_reminder_days: ReminderOffsets = Field(default_factory=lambda: [30, 14])
    annual_perk_expiry_reminder_days: ReminderOffsets = Field(default_factory=lambda: [60, 30])
    renewal_reminder_days: ReminderOffsets = Field(default_factory=lambda: [90, 30, 7, 1])

    perk_expiry_reminder_time: time = time(10, 0)
    renewal_reminder_time: time = time(10, 0)
    first_of_month_reminder_time: time = time(9, 0)

    @field_validator(
        "monthly_perk_expiry_reminder_days",
        "quarterly_perk_expiry_reminder_days",
        "semi_annual_perk_expiry_reminder_days",
        "annual_perk_expiry_reminder_days",
        "renewal_reminder_days",
    )
    @classmethod
    def validate_offsets(cls, v: list[int]) -> list[int]:
        return _clean_offsets(v)

    def perk_expiry_enabled(self, period_months: int) -> bool:
        return {
            1: self.perk_expiry_reminders_enabled,
            3: self.quarterly_perk_reminders_enabled,
            6: self.semi_annual_perk_reminders_enabled,
            12: self.annual_perk_reminders_enabled,
        }.get(period_months, False)

    def perk_expiry_offsets(self, period_months: int) -> list[int]:
        return {
            1: self.monthly_perk_expiry_reminder_days,
            3: self.quarterly_perk_expiry_reminder_days,
            6: self.semi_annual_perk_expiry_reminder_days,
            12: self.annual_perk_expiry_reminder_days,
        }.get(period_months, [])


class NotificationPreferencesUpdate(BaseModel):
    perk_expiry_reminders_enabled: bool | None = None
    quarterly_perk_reminders_enabled: bool | None = None
    semi_annual_perk_reminders_enabled: bool | None = None
    annual_perk_reminders_enabled: bool | None = None
    renewal_reminders_enabled: bool | None = None
    first_of_month_reminders_enabled: bool | None = None
    perk_reset_confirmation_enabled: bool | None = None

    monthly_perk_expiry_reminder_days: ReminderOffsets | None = None
    quarterly_perk_expiry_reminder_days: ReminderOffsets | None = None
    semi_annual_perk_expiry_reminder_days: ReminderOffsets | None = None
    annual_perk_expiry_reminder_days: ReminderOffsets | None = None
    renewal_reminder_days: ReminderOffsets | None = None

    perk_expiry_reminder_time: time | None = None
    renewal_reminder_time: time | None = None
    first_of_month_reminder_time: time | None = None
