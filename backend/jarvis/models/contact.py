"""Contact table definition."""

from __future__ import annotations

from sqlalchemy import Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from jarvis.models.base import Base, TimestampMixin


class ContactRecord(TimestampMixin, Base):
    """One row per messaging contact; booleans are stored as 0/1 integers."""

    __tablename__ = "contacts"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str | None] = mapped_column(Text)
    push_name: Mapped[str | None] = mapped_column(Text)
    phone_number: Mapped[str | None] = mapped_column(Text)
    profile_pic_url: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str | None] = mapped_column(Text)

    is_blocked: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    is_business: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    is_group: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    # ISO-8601 text, fixed width so lexical order matches chronological order
    first_interaction: Mapped[str | None] = mapped_column(Text)
    last_interaction: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        Index("ix_contacts_phone_number", "phone_number"),
        Index("ix_contacts_last_interaction", "last_interaction"),
    )


__all__ = ["ContactRecord"]
