from perkwatch.schemas.card import CardCreate, CardOut, CardRecord
from perkwatch.schemas.cooldown import CooldownRecord, PromptChoiceUpdate, PromptStatus
from perkwatch.schemas.notification_preferences import NotificationPreferences, NotificationPreferencesUpdate
from perkwatch.schemas.perk import PerkCreate, PerkLogRequest, PerkOut, PerkRecord
from perkwatch.schemas.reminder import EntitySnapshot, ReconcileResponse, ReconcileResult, ReminderCandidate

__all__ = [
    "CardCreate", "CardOut", "CardRecord",
    "CooldownRecord", "PromptChoiceUpdate", "PromptStatus",
    "NotificationPreferences", "NotificationPreferencesUpdate",
    "PerkCreate", "PerkLogRequest", "PerkOut", "PerkRecord",
    "EntitySnapshot", "ReconcileResponse", "ReconcileResult", "ReminderCandidate",
]
