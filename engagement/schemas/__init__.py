"""Pydantic schemas for provider payloads and API validation."""

from engagement.schemas.notification import (
    BatchJobRead,
    BatchSummaryRead,
    NotificationBatchCreate,
    NotificationBody,
    NotificationLogRead,
    NotificationPayload,
    ProviderResponse,
)

__all__ = [
    "NotificationBody",
    "NotificationPayload",
    "ProviderResponse",
    "NotificationBatchCreate",
    "BatchSummaryRead",
    "BatchJobRead",
    "NotificationLogRead",
]
