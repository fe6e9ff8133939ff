"""Contact directory model.

Contacts are the patients and caregivers that notifications are addressed to.
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from engagement.db.base import Base, SoftDeleteMixin, TimestampMixin


class Contact(Base, TimestampMixin, SoftDeleteMixin):
    """A contactable party resolved by id when a batch starts."""

    __tablename__ = "contacts"

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    last_name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Contact {self.id[:8]}...>"
