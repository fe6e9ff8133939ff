"""Durable storage of dispatch outcomes."""

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from engagement.models.notification import NotificationLog
from engagement.services.domain import DispatchOutcome
from engagement.services.errors import PersistenceError

logger = logging.getLogger(__name__)


def outcome_to_row(batch_id: str | None, position: int, outcome: DispatchOutcome) -> dict:
    """Flatten an outcome into a notification_logs row."""
    return {
        "batch_id": batch_id,
        "position": position,
        "recipient_id": outcome.recipient.id,
        "recipient_email": outcome.recipient.email_address,
        "subject": outcome.template.subject,
        "body_template": outcome.template.body_template,
        "event_name": outcome.template.event_name,
        "event_type": outcome.template.event_type,
        "template_id": outcome.template.template_id,
        "status": outcome.status,
        "provider_message_id": outcome.provider_message_id,
        "response_code": (
            str(outcome.http_status_code)
            if outcome.http_status_code is not None
            else None
        ),
    }


class OutcomeLogStore(ABC):
    """Abstract bulk writer for dispatch outcomes."""

    @abstractmethod
    async def bulk_insert(
        self,
        batch_id: str | None,
        outcomes: Sequence[DispatchOutcome],
    ) -> int:
        """Write all outcomes at once and return the number written.

        Raises PersistenceError on failure.
        """
        pass


class SqlOutcomeLogStore(OutcomeLogStore):
    """Outcome store backed by the notification_logs table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def bulk_insert(
        self,
        batch_id: str | None,
        outcomes: Sequence[DispatchOutcome],
    ) -> int:
        rows = [
            outcome_to_row(batch_id, position, outcome)
            for position, outcome in enumerate(outcomes)
        ]
        try:
            await self.session.execute(insert(NotificationLog), rows)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError(f"Failed to write notification logs: {e}") from e

        logger.info(
            f"Wrote {len(rows)} notification logs",
            extra={"batch_id": batch_id, "action": "log_write"},
        )
        return len(rows)

    async def list_for_batch(self, batch_id: str) -> Sequence[NotificationLog]:
        """Get logged outcomes for a batch in recipient order."""
        result = await self.session.execute(
            select(NotificationLog)
            .where(NotificationLog.batch_id == batch_id)
            .order_by(NotificationLog.position)
        )
        return result.scalars().all()
