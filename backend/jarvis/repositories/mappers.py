"""Row <-> entity codecs, kept apart from query code so they can be tested without a database."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any, Final

from jarvis.core.errors import DomainError, ErrorKind
from jarvis.core.result import Fail
from jarvis.domain.contact import Contact, normalize_instant
from jarvis.domain.message import AckLevel, Message

logger = logging.getLogger(__name__)

_EPOCH: Final[datetime] = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS: Final[timedelta] = timedelta(milliseconds=1)


def instant_to_text(value: datetime | None) -> str | None:
    """Fixed-width ISO-8601 in UTC so lexical order equals chronological order."""
    if value is None:
        return None
    return normalize_instant(value).isoformat(timespec="microseconds")


def instant_to_millis(value: datetime) -> int:
    return (normalize_instant(value) - _EPOCH) // _ONE_MS


def millis_to_instant(value: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=value)


def _flag(value: Any) -> bool:
    return value == 1 or value is True


def _malformed_row(entity: str, row_id: Any, failure: Fail[DomainError]) -> DomainError:
    errors = failure.error.context.get("errors", [])
    logger.error(
        "Stored row failed validation",
        extra={"entity": entity, "row_id": str(row_id)},
    )
    return DomainError(
        ErrorKind.STORAGE,
        f"Failed to parse {entity.lower()} {row_id}",
        context={"entity": entity, "id": row_id, "errors": errors},
        is_operational=False,
    )


class ContactMapper:
    """Translates between ``contacts`` rows and :class:`Contact` entities."""

    @staticmethod
    def to_row(contact: Contact) -> dict[str, Any]:
        return {
            "id": contact.id,
            "name": contact.name,
            "push_name": contact.push_name,
            "phone_number": contact.phone_number,
            "profile_pic_url": contact.profile_pic_url,
            "status": contact.status,
            "is_blocked": int(contact.is_blocked),
            "is_business": int(contact.is_business),
            "is_group": int(contact.is_group),
            "first_interaction": instant_to_text(contact.first_interaction),
            "last_interaction": instant_to_text(contact.last_interaction),
        }

    @staticmethod
    def to_entity(row: Mapping[str, Any]) -> Contact:
        """Rebuild a validated Contact; a row that fails validation is a storage defect."""
        result = Contact.create(
            {
                "id": row["id"],
                "name": row.get("name"),
                "push_name": row.get("push_name"),
                "phone_number": row.get("phone_number"),
                "profile_pic_url": row.get("profile_pic_url"),
                "status": row.get("status"),
                "is_blocked": _flag(row.get("is_blocked")),
                "is_business": _flag(row.get("is_business")),
                "is_group": _flag(row.get("is_group")),
                "first_interaction": row.get("first_interaction"),
                "last_interaction": row.get("last_interaction"),
            }
        )
        if isinstance(result, Fail):
            raise _malformed_row("Contact", row["id"], result)
        return result.data


class MessageMapper:
    """Translates between ``messages`` rows and :class:`Message` entities."""

    @staticmethod
    def to_row(message: Message) -> dict[str, Any]:
        return {
            "id": message.id,
            "chat_id": message.chat_id,
            "sender": message.sender,
            "body": message.body,
            "type": str(message.type),
            "from_me": int(message.from_me),
            "has_media": int(message.has_media()),
            "media_type": message.mimetype,
            "media_url": message.media_url,
            "ack": int(message.ack),
            "timestamp": instant_to_millis(message.timestamp),
            "is_forwarded": int(message.is_forwarded),
            "forwarding_score": message.forwarding_score,
            "reply_to": message.quoted_message_id,
        }

    @staticmethod
    def to_entity(row: Mapping[str, Any]) -> Message:
        timestamp = row.get("timestamp")
        result = Message.create(
            {
                "id": row["id"],
                "chat_id": row.get("chat_id"),
                "from_me": _flag(row.get("from_me")),
                "sender": row.get("sender"),
                "body": row.get("body") or "",
                "type": row.get("type"),
                "timestamp": millis_to_instant(timestamp) if timestamp is not None else None,
                "ack": row.get("ack", AckLevel.PENDING),
                "quoted_message_id": row.get("reply_to"),
                "media_url": row.get("media_url"),
                "mimetype": row.get("media_type"),
                "is_forwarded": _flag(row.get("is_forwarded")),
                "forwarding_score": row.get("forwarding_score") or 0,
            }
        )
        if isinstance(result, Fail):
            raise _malformed_row("Message", row["id"], result)
        return result.data


__all__ = [
    "ContactMapper",
    "MessageMapper",
    "instant_to_millis",
    "instant_to_text",
    "millis_to_instant",
]
