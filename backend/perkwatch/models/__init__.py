from perkwatch.models.card import Card
from perkwatch.models.perk import Perk
from perkwatch.models.scheduled_reminder import ScheduledReminder
from perkwatch.models.setting import Setting

__all__ = ["Card", "Perk", "ScheduledReminder", "Setting"]
