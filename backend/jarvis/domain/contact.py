"""Contact entity for messaging-client contacts."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

from jarvis.core.errors import DomainError, ErrorFactory
from jarvis.core.result import Result, fail, ok

_HTTP_URL = TypeAdapter(HttpUrl)
_BR_MOBILE = re.compile(r"^(\d{2})(\d{2})(\d{5})(\d{4})$")
_ID_SUFFIXES = ("@c.us", "@g.us")


def normalize_instant(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def phone_from_id(contact_id: str) -> str:
    """Strip the ``@server`` part of a composite identity such as ``5511...@c.us``."""
    return contact_id.split("@", 1)[0]


class Contact(BaseModel):
    """A messaging contact.

    Instances are immutable and always valid: build them through
    :meth:`create`, which returns a failed Result instead of raising when the
    input is malformed. ``id`` is the stable identity (``5511999999999@c.us``).
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(min_length=1)
    name: str | None = None
    push_name: str | None = None
    phone_number: str | None = Field(default=None, validate_default=True)
    profile_pic_url: str | None = None
    status: str | None = Field(
        default=None,
        validation_alias=AliasChoices("status", "about"),
    )
    is_blocked: bool = False
    is_business: bool = False
    is_group: bool = False
    first_interaction: datetime | None = None
    last_interaction: datetime | None = None

    @field_validator("name", "push_name", "profile_pic_url", "status", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("phone_number", mode="before")
    @classmethod
    def _blank_phone_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("phone_number")
    @classmethod
    def _derive_phone_number(cls, value: str | None, info: ValidationInfo) -> str | None:
        if value is not None:
            return value
        contact_id = info.data.get("id")
        if not contact_id:
            return None
        return phone_from_id(contact_id) or None

    @field_validator("profile_pic_url")
    @classmethod
    def _validate_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        _HTTP_URL.validate_python(value)
        return value

    @field_validator("first_interaction", "last_interaction")
    @classmethod
    def _normalize_instant(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return normalize_instant(value)

    @classmethod
    def create(cls, fields: Mapping[str, Any]) -> Result[Contact, DomainError]:
        """Validate ``fields`` (snake_case or camelCase keys) into a Contact."""
        try:
            return ok(cls.model_validate(dict(fields)))
        except ValidationError as exc:
            return fail(
                ErrorFactory.validation(
                    "Invalid contact data",
                    {"errors": exc.errors(include_url=False, include_context=False)},
                )
            )

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def formatted_phone_number(self) -> str:
        number = self.phone_number or phone_from_id(self.id)
        if len(number) == 13 and number.startswith("55"):
            return _BR_MOBILE.sub(r"+\1 (\2) \3-\4", number)
        return f"+{number}"

    @property
    def display_name(self) -> str:
        return self.name or self.push_name or self.formatted_phone_number

    @property
    def initials(self) -> str:
        words = self.display_name.split()
        if not words:
            return "?"
        if len(words) == 1:
            return words[0][0].upper()
        return (words[0][0] + words[-1][0]).upper()

    def is_group_id(self) -> bool:
        return self.id.endswith("@g.us")

    def is_authorized(self, authorized: Iterable[str]) -> bool:
        """Match either the full identity or its bare phone number."""
        phone = _strip_suffix(self.id)
        for entry in authorized:
            if entry == self.id or _strip_suffix(entry) == phone:
                return True
        return False

    def days_since_last_interaction(self, now: datetime | None = None) -> int | None:
        if self.last_interaction is None:
            return None
        current = normalize_instant(now) if now else datetime.now(tz=UTC)
        return (current - self.last_interaction).days

    def is_active(self, threshold_days: int = 7, now: datetime | None = None) -> bool:
        days = self.days_since_last_interaction(now)
        return days is not None and days < threshold_days

    # ------------------------------------------------------------------
    # Immutable updates
    # ------------------------------------------------------------------

    def with_last_interaction(self, when: datetime) -> Contact:
        return self._replace(last_interaction=when)

    def with_blocked(self, blocked: bool) -> Contact:
        return self._replace(is_blocked=blocked)

    def _replace(self, **changes: Any) -> Contact:
        return type(self).model_validate({**self.model_dump(), **changes})

    def __str__(self) -> str:
        return f"Contact[{self.display_name}]"


def _strip_suffix(value: str) -> str:
    for suffix in _ID_SUFFIXES:
        value = value.replace(suffix, "")
    return value


__all__ = ["Contact", "normalize_instant", "phone_from_id"]
