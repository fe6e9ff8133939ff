"""Database models for the engagement notification service."""

from engagement.models.configuration import (
    MessagingEndpoint,
    NotificationTemplateConfig,
    PolicyUrlSet,
)
from engagement.models.contact import Contact
from engagement.models.notification import (
    BatchStatus,
    NotificationBatchJob,
    NotificationLog,
)

__all__ = [
    # Directory
    "Contact",
    # Configuration
    "NotificationTemplateConfig",
    "MessagingEndpoint",
    "PolicyUrlSet",
    # Notifications
    "BatchStatus",
    "NotificationBatchJob",
    "NotificationLog",
]
