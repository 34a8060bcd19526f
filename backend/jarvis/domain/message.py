"""Message entity with command parsing and media helpers."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum, StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from jarvis.core.errors import DomainError, ErrorFactory
from jarvis.core.result import Result, fail, ok
from jarvis.domain.contact import normalize_instant

COMMAND_PREFIXES = ("/", "!")
VIRAL_FORWARDING_SCORE = 4

_MENTION = re.compile(r"@(\d+)")
_URL = re.compile(r"https?://\S+")


class AckLevel(IntEnum):
    ERROR = -1
    PENDING = 0
    SENT = 1
    DELIVERED = 2
    READ = 3
    PLAYED = 4


class MessageType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    STICKER = "sticker"
    LOCATION = "location"
    CONTACT = "contact"
    REVOKED = "revoked"
    POLL = "poll"
    REACTION = "reaction"


MEDIA_TYPES = frozenset(
    {
        MessageType.IMAGE,
        MessageType.VIDEO,
        MessageType.AUDIO,
        MessageType.DOCUMENT,
        MessageType.STICKER,
    }
)


@dataclass(frozen=True, slots=True)
class CommandInvocation:
    name: str
    args: list[str]
    raw_args: str


class Message(BaseModel):
    """A chat message as captured from the messaging client."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(min_length=1)
    chat_id: str = Field(min_length=1)
    from_me: bool
    sender: str = Field(min_length=1)
    body: str = ""
    type: MessageType = MessageType.TEXT
    timestamp: datetime
    ack: AckLevel = AckLevel.PENDING
    quoted_message_id: str | None = None
    media_url: str | None = None
    mimetype: str | None = None
    is_forwarded: bool = False
    forwarding_score: int = Field(default=0, ge=0)

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        # stored as epoch milliseconds
        value = normalize_instant(value)
        return value.replace(microsecond=value.microsecond // 1000 * 1000)

    @classmethod
    def create(cls, fields: Mapping[str, Any]) -> Result[Message, DomainError]:
        try:
            return ok(cls.model_validate(dict(fields)))
        except ValidationError as exc:
            return fail(
                ErrorFactory.validation(
                    "Invalid message data",
                    {"errors": exc.errors(include_url=False, include_context=False)},
                )
            )

    def is_command(self) -> bool:
        return self.body.strip().startswith(COMMAND_PREFIXES)

    def extract_command(self) -> CommandInvocation | None:
        """Split ``/name arg1 arg2`` into a lower-cased name and its arguments."""
        if not self.is_command():
            return None

        content = self.body.strip()[1:]
        name, _, rest = content.partition(" ")
        raw_args = rest.strip()
        return CommandInvocation(name=name.lower(), args=raw_args.split(), raw_args=raw_args)

    def has_media(self) -> bool:
        return self.type in MEDIA_TYPES

    def is_reply(self) -> bool:
        return bool(self.quoted_message_id)

    def is_viral(self) -> bool:
        return self.forwarding_score >= VIRAL_FORWARDING_SCORE

    @property
    def word_count(self) -> int:
        return len(self.body.split())

    def mentions(self) -> list[str]:
        return _MENTION.findall(self.body)

    def urls(self) -> list[str]:
        return _URL.findall(self.body)

    def with_ack(self, ack: AckLevel) -> Message:
        return type(self).model_validate({**self.model_dump(), "ack": ack})

    def __str__(self) -> str:
        preview = self.body if len(self.body) <= 50 else f"{self.body[:50]}..."
        return f'Message[{self.id}]: "{preview}"'


__all__ = [
    "AckLevel",
    "CommandInvocation",
    "MEDIA_TYPES",
    "Message",
    "MessageType",
]
