"""Shared builders for tests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from jarvis.core.result import unwrap
from jarvis.domain.contact import Contact
from jarvis.domain.message import Message

BASE_TIME = datetime(2024, 11, 9, 12, 0, tzinfo=UTC)


def make_contact(contact_id: str = "5511999999999@c.us", **overrides: Any) -> Contact:
    fields: dict[str, Any] = {"id": contact_id, **overrides}
    return unwrap(Contact.create(fields))


def make_message(
    message_id: str = "msg-1",
    *,
    chat_id: str = "5511999999999@c.us",
    **overrides: Any,
) -> Message:
    fields: dict[str, Any] = {
        "id": message_id,
        "chat_id": chat_id,
        "from_me": False,
        "sender": chat_id,
        "body": "hello",
        "timestamp": BASE_TIME,
        **overrides,
    }
    return unwrap(Message.create(fields))
