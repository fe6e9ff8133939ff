"""Initial schema: contacts, notification configuration, batches and logs.

Revision ID: 001
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create all tables."""

    op.create_table(
        "contacts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_contacts"),
    )
    op.create_index("ix_contacts_email", "contacts", ["email"])
    op.create_index("ix_contacts_is_deleted", "contacts", ["is_deleted"])

    op.create_table(
        "notification_templates",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("developer_name", sa.String(100), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("body_template", sa.String(255), nullable=False),
        sa.Column("template_id", sa.String(100), nullable=False),
        sa.Column("event_name", sa.String(100), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_notification_templates"),
        sa.UniqueConstraint(
            "developer_name", name="uq_notification_templates_developer_name"
        ),
    )

    op.create_table(
        "messaging_endpoints",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("base_url", sa.String(500), nullable=False),
        sa.Column("channel_id", sa.String(100), nullable=False),
        sa.Column("country", sa.String(10), nullable=False),
        sa.Column("config_item", sa.String(100), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_messaging_endpoints"),
        sa.UniqueConstraint("key", name="uq_messaging_endpoints_key"),
    )

    op.create_table(
        "policy_url_sets",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("unsubscribe_url", sa.String(500), nullable=False),
        sa.Column("terms_of_use_url", sa.String(500), nullable=False),
        sa.Column("privacy_notice_url", sa.String(500), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_policy_url_sets"),
        sa.UniqueConstraint("key", name="uq_policy_url_sets_key"),
    )

    op.create_table(
        "notification_batch_jobs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("template_key", sa.String(100), nullable=False),
        sa.Column("destination_url", sa.String(500), nullable=False),
        sa.Column("notification_date", sa.String(50), nullable=True),
        sa.Column("contact_ids", sa.JSON(), nullable=False),
        sa.Column("user_names", sa.JSON(), nullable=False),
        sa.Column("patient_names", sa.JSON(), nullable=False),
        sa.Column("next_user_name_index", sa.Integer(), nullable=False),
        sa.Column("next_patient_name_index", sa.Integer(), nullable=False),
        sa.Column("processed_count", sa.Integer(), nullable=False),
        sa.Column("resolved_count", sa.Integer(), nullable=False),
        sa.Column("sent_count", sa.Integer(), nullable=False),
        sa.Column("failed_count", sa.Integer(), nullable=False),
        sa.Column("logged_count", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_notification_batch_jobs"),
    )
    op.create_index(
        "ix_notification_batch_jobs_status", "notification_batch_jobs", ["status"]
    )

    op.create_table(
        "notification_logs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("batch_id", sa.String(36), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("recipient_id", sa.String(36), nullable=False),
        sa.Column("recipient_email", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("body_template", sa.String(255), nullable=False),
        sa.Column("event_name", sa.String(100), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("template_id", sa.String(100), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("provider_message_id", sa.Text(), nullable=True),
        sa.Column("response_code", sa.String(10), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_notification_logs"),
    )
    op.create_index("ix_notification_logs_batch_id", "notification_logs", ["batch_id"])
    op.create_index(
        "ix_notification_logs_recipient_id", "notification_logs", ["recipient_id"]
    )
    op.create_index("ix_notification_logs_status", "notification_logs", ["status"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("notification_logs")
    op.drop_table("notification_batch_jobs")
    op.drop_table("policy_url_sets")
    op.drop_table("messaging_endpoints")
    op.drop_table("notification_templates")
    op.drop_table("contacts")
