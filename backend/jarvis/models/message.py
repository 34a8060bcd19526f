"""Message table definition."""

from __future__ import annotations

from sqlalchemy import BigInteger, Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from jarvis.models.base import Base, CreatedAtMixin


class MessageRecord(CreatedAtMixin, Base):
    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    chat_id: Mapped[str] = mapped_column(Text, nullable=False)
    sender: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'text'"))

    from_me: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    has_media: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    media_type: Mapped[str | None] = mapped_column(Text)
    media_url: Mapped[str | None] = mapped_column(Text)
    ack: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    # epoch milliseconds
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    is_deleted: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    is_forwarded: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    forwarding_score: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    reply_to: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        Index("ix_messages_chat_id", "chat_id"),
        Index("ix_messages_sender", "sender"),
        Index("ix_messages_timestamp", "timestamp"),
    )


__all__ = ["MessageRecord"]
