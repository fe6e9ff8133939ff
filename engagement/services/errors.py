"""Exceptions raised inside the notification pipeline.

None of these escape ``BatchOrchestrator.run_batch``; they mark the unit of
work that failed so the orchestrator can log it and carry on or stop.
"""


class NotificationError(Exception):
    """Base exception for notification pipeline errors."""

    pass


class BatchValidationError(NotificationError):
    """Batch inputs or required configuration are missing or blank."""

    pass


class DispatchError(NotificationError):
    """The provider call could not be completed."""

    pass


class PersistenceError(NotificationError):
    """A write to the log or job store failed."""

    pass
