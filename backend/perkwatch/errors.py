class PerkwatchError(Exception):
    """Base class for engine errors."""


class ValidationError(PerkwatchError, ValueError):
    """An operation was rejected before any mutation took place."""


class PersistenceError(PerkwatchError):
    """The key-value store could not be read or written."""


class SchedulingError(PerkwatchError):
    """The notification collaborator rejected a submit, cancel or listing."""
