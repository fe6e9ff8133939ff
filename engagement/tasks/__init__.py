"""Scheduled tasks for the engagement notification service."""

from engagement.tasks.notification_batch import run_notification_batch_task

__all__ = [
    "run_notification_batch_task",
]
