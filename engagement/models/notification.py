"""Notification batch and delivery log models."""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from engagement.db.base import Base, TimestampMixin


class BatchStatus(str, Enum):
    """Lifecycle of a notification batch job."""

    RUNNING = "running"
    COMPLETED = "completed"  # All phases ran (individual sends may have failed)
    INVALID = "invalid"  # Rejected before dispatch
    ABORTED = "aborted"  # No recipients resolved
    ERROR = "error"  # Unexpected failure, see logs


class NotificationBatchJob(Base, TimestampMixin):
    """Persisted state of one batch, including the override cursor.

    The cursor fields are written after every chunk so the next chunk picks
    up the username and patient-name overrides where the last one stopped.
    """

    __tablename__ = "notification_batch_jobs"

    status: Mapped[BatchStatus] = mapped_column(
        String(20),
        default=BatchStatus.RUNNING,
        nullable=False,
        index=True,
    )
    template_key: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    destination_url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    notification_date: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    contact_ids: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
    )
    user_names: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
    )
    patient_names: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
    )
    # Resume cursor
    next_user_name_index: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    next_patient_name_index: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    processed_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    # Final counts
    resolved_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    sent_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    failed_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    logged_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    error_message: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    finished_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<NotificationBatchJob {self.id[:8]}... status={self.status}>"


class NotificationLog(Base, TimestampMixin):
    """Durable record of one dispatch attempt."""

    __tablename__ = "notification_logs"

    batch_id: Mapped[str | None] = mapped_column(
        String(36),
        nullable=True,
        index=True,
    )
    # Order of the recipient within its batch
    position: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    recipient_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
    )
    recipient_email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    subject: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    body_template: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    event_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    template_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        index=True,
    )
    provider_message_id: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    # Stored as text as received from the provider call
    response_code: Mapped[str | None] = mapped_column(
        String(10),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<NotificationLog {self.recipient_id[:8]}... status={self.status}>"
