from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from jarvis.core.errors import ErrorKind
from jarvis.core.result import Fail, Ok, unwrap
from jarvis.domain.contact import Contact, normalize_instant, phone_from_id

from tests.helpers import make_contact

NOW = datetime(2024, 11, 20, 12, 0, tzinfo=UTC)


def test_create_derives_phone_number_from_id() -> None:
    contact = make_contact("5511999999999@c.us")

    assert contact.phone_number == "5511999999999"
    assert contact.is_blocked is False
    assert contact.name is None


def test_create_accepts_camel_case_and_about_alias() -> None:
    contact = unwrap(
        Contact.create(
            {
                "id": "123@c.us",
                "pushName": "Ana",
                "isBusiness": True,
                "about": "Hey there",
            }
        )
    )

    assert contact.push_name == "Ana"
    assert contact.is_business is True
    assert contact.status == "Hey there"


@pytest.mark.parametrize(
    "fields",
    [
        {"id": ""},
        {"id": "   "},
        {"name": "No id"},
        {"id": "1@c.us", "profilePicUrl": "not a url"},
        {"id": "1@c.us", "unknown": 1},
        {"id": "1@c.us", "lastInteraction": "yesterday"},
    ],
)
def test_create_returns_validation_failure(fields: dict[str, object]) -> None:
    result = Contact.create(fields)

    assert isinstance(result, Fail)
    assert result.error.kind is ErrorKind.VALIDATION
    assert result.error.message == "Invalid contact data"
    assert result.error.context["errors"]


def test_blank_optional_strings_become_unset() -> None:
    contact = make_contact(name="  ", status="")

    assert contact.name is None
    assert contact.status is None


def test_profile_pic_url_is_kept_as_given() -> None:
    url = "https://pps.whatsapp.net/v/t61/abc.jpg?ccb=11-4"

    assert make_contact(profile_pic_url=url).profile_pic_url == url


def test_interactions_are_normalized_to_utc() -> None:
    local = datetime(2024, 11, 9, 9, 0, tzinfo=timezone(timedelta(hours=-3)))

    contact = make_contact(last_interaction=local, first_interaction=datetime(2024, 1, 1))

    assert contact.last_interaction == datetime(2024, 11, 9, 12, 0, tzinfo=UTC)
    assert contact.last_interaction.tzinfo is UTC
    assert contact.first_interaction == datetime(2024, 1, 1, tzinfo=UTC)


def test_contact_is_immutable() -> None:
    contact = make_contact()

    with pytest.raises(ValidationError):
        contact.name = "Changed"  # type: ignore[misc]


@pytest.mark.parametrize(
    ("phone", "expected"),
    [
        ("5511999999999", "+55 (11) 99999-9999"),
        ("14155550100", "+14155550100"),
        ("551199999999", "+551199999999"),
    ],
)
def test_formatted_phone_number(phone: str, expected: str) -> None:
    assert make_contact(f"{phone}@c.us").formatted_phone_number == expected


def test_display_name_and_initials_fallbacks() -> None:
    named = make_contact(name="Ana Maria Souza", push_name="Aninha")
    pushed = make_contact(push_name="aninha")
    anonymous = make_contact()

    assert named.display_name == "Ana Maria Souza"
    assert named.initials == "AS"
    assert pushed.display_name == "aninha"
    assert pushed.initials == "A"
    assert anonymous.display_name == "+55 (11) 99999-9999"
    assert str(named) == "Contact[Ana Maria Souza]"


def test_group_identity() -> None:
    assert make_contact("120363000000000000@g.us").is_group_id() is True
    assert make_contact().is_group_id() is False


def test_is_authorized_matches_identity_or_phone() -> None:
    contact = make_contact()

    assert contact.is_authorized(["5511999999999@c.us"]) is True
    assert contact.is_authorized(["5511999999999"]) is True
    assert contact.is_authorized(["5511888888888"]) is False
    assert contact.is_authorized([]) is False


def test_activity_window() -> None:
    recent = make_contact(last_interaction=NOW - timedelta(days=2))
    stale = make_contact(last_interaction=NOW - timedelta(days=10))
    never = make_contact()

    assert recent.days_since_last_interaction(NOW) == 2
    assert recent.is_active(now=NOW) is True
    assert stale.is_active(now=NOW) is False
    assert stale.is_active(threshold_days=30, now=NOW) is True
    assert never.days_since_last_interaction(NOW) is None
    assert never.is_active(now=NOW) is False


def test_immutable_updates_return_new_instances() -> None:
    contact = make_contact(name="Ana")

    touched = contact.with_last_interaction(NOW)
    blocked = contact.with_blocked(True)

    assert contact.last_interaction is None
    assert touched.last_interaction == NOW
    assert touched.name == "Ana"
    assert blocked.is_blocked is True
    assert contact.is_blocked is False


def test_create_success_is_ok() -> None:
    assert isinstance(Contact.create({"id": "1@c.us"}), Ok)


def test_helpers() -> None:
    assert phone_from_id("5511@c.us") == "5511"
    assert phone_from_id("plain") == "plain"
    assert normalize_instant(datetime(2024, 1, 1)).tzinfo is UTC
