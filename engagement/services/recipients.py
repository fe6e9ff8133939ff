"""Recipient resolution.

Turns an ordered list of contact ids into recipients, keeping the caller's
order and duplicate count. Ids with no directory entry are dropped.
"""

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from engagement.models.contact import Contact
from engagement.services.domain import Recipient

logger = logging.getLogger(__name__)


class RecipientDirectory(ABC):
    """Abstract lookup of recipients by id."""

    @abstractmethod
    async def lookup(self, ids: set[str]) -> dict[str, Recipient]:
        """Return the recipients found for ``ids``, keyed by id."""
        pass


class SqlRecipientDirectory(RecipientDirectory):
    """Directory backed by the contacts table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def lookup(self, ids: set[str]) -> dict[str, Recipient]:
        if not ids:
            return {}

        result = await self.session.execute(
            select(Contact).where(
                Contact.id.in_(list(ids)),
                Contact.is_active == True,
                Contact.is_deleted == False,
            )
        )
        return {
            contact.id: Recipient(
                id=contact.id,
                display_name=contact.first_name,
                email_address=contact.email,
            )
            for contact in result.scalars().all()
        }


class RecipientResolver:
    """Resolve contact ids to recipients."""

    def __init__(self, directory: RecipientDirectory):
        self.directory = directory

    async def resolve(self, ids: Sequence[str]) -> list[Recipient]:
        """Resolve ``ids`` in order.

        Every occurrence of an id yields its own entry, so ``[A, A, B]``
        resolves to three recipients. Unknown ids are logged and skipped.
        """
        found = await self.directory.lookup(set(ids))

        recipients: list[Recipient] = []
        for contact_id in ids:
            recipient = found.get(contact_id)
            if recipient is None:
                logger.info(
                    f"Recipient not found, skipping: {contact_id}",
                    extra={"recipient_id": contact_id, "action": "resolve"},
                )
                continue
            recipients.append(recipient)

        return recipients
