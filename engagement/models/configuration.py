"""Notification configuration models.

Template descriptors, messaging endpoints and policy URL sets are
administrator-maintained configuration. They are looked up by a logical key
before a batch dispatches anything and are never mutated at runtime.
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from engagement.db.base import Base, TimestampMixin


class NotificationTemplateConfig(Base, TimestampMixin):
    """Template descriptor for one kind of notification."""

    __tablename__ = "notification_templates"

    developer_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )
    subject: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    # Descriptive name of the body template, recorded in notification logs
    body_template: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    # Provider-side template identifier sent as templateID
    template_id: Mapped[str] = mapped_column(
        String(100),
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
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<NotificationTemplateConfig {self.developer_name}>"


class MessagingEndpoint(Base, TimestampMixin):
    """Omnichannel endpoint settings.

    The request path is ``{base_url}/{channel_id}/{country}/{config_item}``.
    """

    __tablename__ = "messaging_endpoints"

    key: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )
    base_url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    channel_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    country: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )
    config_item: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<MessagingEndpoint {self.key}>"


class PolicyUrlSet(Base, TimestampMixin):
    """Unsubscribe, terms of use and privacy notice links."""

    __tablename__ = "policy_url_sets"

    key: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )
    unsubscribe_url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    terms_of_use_url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    privacy_notice_url: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PolicyUrlSet {self.key}>"
