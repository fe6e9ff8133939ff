"""Business logic services."""

from engagement.services.batch import BatchOrchestrator
from engagement.services.configuration import ConfigurationService
from engagement.services.dispatch import DispatchClient
from engagement.services.domain import (
    BatchSummary,
    DispatchContext,
    DispatchOutcome,
    DispatchStatus,
    JobState,
    NotificationTemplate,
    PolicyUrls,
    Recipient,
)
from engagement.services.payload import build_payload
from engagement.services.recipients import RecipientResolver

__all__ = [
    "BatchOrchestrator",
    "ConfigurationService",
    "DispatchClient",
    "RecipientResolver",
    "build_payload",
    "BatchSummary",
    "DispatchContext",
    "DispatchOutcome",
    "DispatchStatus",
    "JobState",
    "NotificationTemplate",
    "PolicyUrls",
    "Recipient",
]
