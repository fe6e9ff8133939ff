"""Value types shared by the notification batch pipeline."""

from dataclasses import dataclass, field
from enum import Enum


class DispatchStatus(str, Enum):
    """Textual outcome recorded for a dispatch attempt."""

    SENT = "Sent"
    FAILED = "Failed"


@dataclass(frozen=True)
class Recipient:
    """A contactable party resolved from the directory."""

    id: str
    display_name: str
    email_address: str


@dataclass(frozen=True)
class NotificationTemplate:
    """Template descriptor supplied whole to a batch."""

    developer_name: str
    subject: str
    body_template: str
    template_id: str
    event_name: str
    event_type: str


@dataclass(frozen=True)
class PolicyUrls:
    """Legal links embedded in every payload."""

    unsubscribe_url: str
    terms_of_use_url: str
    privacy_notice_url: str


@dataclass(frozen=True)
class MessagingEndpointConfig:
    """Where payloads are posted."""

    base_url: str
    channel_id: str
    country: str
    config_item: str

    @property
    def url(self) -> str:
        """Assemble the full request URL."""
        return (
            f"{self.base_url.rstrip('/')}/{self.channel_id}"
            f"/{self.country}/{self.config_item}"
        )


@dataclass
class DispatchContext:
    """Per-batch invariant inputs.

    ``user_names`` and ``patient_names`` are consumed by position across the
    whole resolved recipient list. Either may be shorter than the recipient
    list; recipients past the end get no override.
    """

    contact_ids: list[str]
    template_key: str
    destination_url: str
    notification_date: str | None = None
    user_names: list[str] = field(default_factory=list)
    patient_names: list[str] = field(default_factory=list)
    endpoint_key: str | None = None
    policy_key: str | None = None


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of one dispatch attempt. Immutable once created."""

    recipient: Recipient
    template: NotificationTemplate
    status: str
    provider_message_id: str | None = None
    http_status_code: int | None = None
    # Not persisted; surfaced in logs by the orchestrator
    error_message: str | None = None

    @property
    def is_sent(self) -> bool:
        """True when the provider accepted the message."""
        return self.http_status_code == 200 and self.status != DispatchStatus.FAILED.value


@dataclass
class JobState:
    """Resume cursor carried from one chunk to the next."""

    batch_id: str
    next_user_name_index: int = 0
    next_patient_name_index: int = 0
    processed_count: int = 0

    def take_user_name(self, user_names: list[str]) -> str | None:
        """Consume the next username override, if any remain."""
        if self.next_user_name_index >= len(user_names):
            return None
        value = user_names[self.next_user_name_index]
        self.next_user_name_index += 1
        return value

    def take_patient_name(self, patient_names: list[str]) -> str | None:
        """Consume the next patient-name override, if any remain."""
        if self.next_patient_name_index >= len(patient_names):
            return None
        value = patient_names[self.next_patient_name_index]
        self.next_patient_name_index += 1
        return value


@dataclass
class BatchSummary:
    """Structured result of a batch run."""

    batch_id: str | None
    status: str
    requested: int = 0
    resolved: int = 0
    dispatched: int = 0
    sent: int = 0
    failed: int = 0
    logged: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Return a plain dict for logging and JSON responses."""
        return {
            "batch_id": self.batch_id,
            "status": self.status,
            "requested": self.requested,
            "resolved": self.resolved,
            "dispatched": self.dispatched,
            "sent": self.sent,
            "failed": self.failed,
            "logged": self.logged,
            "errors": list(self.errors),
        }
