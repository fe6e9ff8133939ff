"""Pydantic schemas for notification payloads and batch operations."""

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from engagement.models.notification import BatchStatus


class NotificationBody(BaseModel):
    """Personalisation block of the provider payload.

    Optional fields left as ``None`` are dropped on serialisation; the
    provider expects them to be absent rather than null.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    first_name: str = Field(alias="firstname")
    patient_name: str | None = Field(default=None, alias="patientname")
    unsubscribe_url: str = Field(alias="ubi-pspb-unsubscribe")
    terms_of_use_url: str = Field(alias="ubi-pspb-termsofuse")
    privacy_notice_url: str = Field(alias="ubi-pspb-privacynotice")
    user_name: str = Field(alias="Username")
    date: str | None = None
    url: str


class NotificationPayload(BaseModel):
    """Request body posted to the omnichannel messaging API."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    email_id: str = Field(alias="emailId")
    body: NotificationBody
    subject: str
    template_id: str = Field(alias="templateID")

    def to_wire(self) -> dict:
        """Serialise with provider field names, omitting absent optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ProviderResponse(BaseModel):
    """Success response from the messaging API. Both fields are optional."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: str | None = None
    message_id: str | None = Field(default=None, alias="messageId")

    @classmethod
    def parse_body(cls, text: str) -> "ProviderResponse":
        """Parse a response body, treating anything unreadable as empty."""
        if not text or not text.strip():
            return cls()
        try:
            data = json.loads(text)
        except ValueError:
            return cls()
        if not isinstance(data, dict):
            return cls()
        try:
            return cls.model_validate(data)
        except ValidationError:
            # Wrong types on known fields, e.g. a numeric status
            return cls(
                status=data["status"] if isinstance(data.get("status"), str) else None,
                message_id=data["messageId"] if isinstance(data.get("messageId"), str) else None,
            )


# ============================================================================
# API schemas
# ============================================================================


class NotificationBatchCreate(BaseModel):
    """Request to run a notification batch."""

    contact_ids: list[str] = Field(
        ...,
        description="Recipient contact ids, in send order. Duplicates are sent twice.",
    )
    template_key: str = Field(..., description="Developer name of the template")
    destination_url: str = Field(..., description="Link included in the message body")
    notification_date: str | None = None
    user_names: list[str] = Field(default_factory=list)
    patient_names: list[str] = Field(default_factory=list)
    endpoint_key: str | None = None
    policy_key: str | None = None


class BatchSummaryRead(BaseModel):
    """Result of a batch run."""

    batch_id: str | None
    status: str
    requested: int
    resolved: int
    dispatched: int
    sent: int
    failed: int
    logged: int
    errors: list[str]


class BatchJobRead(BaseModel):
    """Persisted batch job state."""

    id: str
    status: BatchStatus
    template_key: str
    destination_url: str
    notification_date: str | None
    contact_ids: list[str]
    next_user_name_index: int
    next_patient_name_index: int
    processed_count: int
    resolved_count: int
    sent_count: int
    failed_count: int
    logged_count: int
    error_message: str | None
    created_at: datetime
    finished_at: datetime | None

    model_config = {"from_attributes": True}


class NotificationLogRead(BaseModel):
    """One logged dispatch outcome."""

    id: str
    batch_id: str | None
    position: int
    recipient_id: str
    recipient_email: str
    subject: str
    body_template: str
    event_name: str
    event_type: str
    template_id: str
    status: str
    provider_message_id: str | None
    response_code: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
