"""Tests for the SQLite message repository."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from jarvis.domain.message import AckLevel, Message, MessageType
from jarvis.repositories import FindOptions, MessageRepository, MessageStats, Repository

from tests.helpers import BASE_TIME, make_message

CHAT = "5511999999999@c.us"
OTHER_CHAT = "5511888888888@c.us"


@pytest.fixture()
def repo(db_session: AsyncSession) -> MessageRepository:
    return MessageRepository(db_session)


async def _seed_timeline(repo: MessageRepository, count: int, chat_id: str = CHAT) -> None:
    for index in range(count):
        await repo.save(
            make_message(
                f"{chat_id}-{index}",
                chat_id=chat_id,
                body=f"message {index}",
                timestamp=BASE_TIME + timedelta(minutes=index),
            )
        )


@pytest.mark.asyncio
async def test_save_then_find_by_id_round_trips(repo: MessageRepository) -> None:
    message = make_message(
        "m1",
        body="see attachment",
        type=MessageType.DOCUMENT,
        mimetype="application/pdf",
        media_url="https://example.com/doc.pdf",
        quoted_message_id="m0",
        is_forwarded=True,
        forwarding_score=2,
        ack=AckLevel.SENT,
    )

    await repo.save(message)

    assert await repo.find_by_id("m1") == message
    assert await repo.exists("m1") is True
    assert await repo.find_by_id("missing") is None


@pytest.mark.asyncio
async def test_save_upserts_and_delete_reports_existence(repo: MessageRepository) -> None:
    await repo.save(make_message("m1", body="draft"))
    await repo.save(make_message("m1", body="final"))

    stored = await repo.find_by_id("m1")
    assert stored is not None
    assert stored.body == "final"
    assert await repo.count() == 1

    assert await repo.delete("m1") is True
    assert await repo.delete("m1") is False


@pytest.mark.asyncio
async def test_find_all_is_newest_first(repo: MessageRepository) -> None:
    await _seed_timeline(repo, 3)

    ids = [message.id for message in await repo.find_all()]

    assert ids == [f"{CHAT}-2", f"{CHAT}-1", f"{CHAT}-0"]


@pytest.mark.asyncio
async def test_count_by_chat_accepts_either_key(repo: MessageRepository) -> None:
    await _seed_timeline(repo, 3)
    await _seed_timeline(repo, 2, chat_id=OTHER_CHAT)

    assert await repo.count() == 5
    assert await repo.count({"chat_id": CHAT}) == 3
    assert await repo.count({"chatId": OTHER_CHAT}) == 2


@pytest.mark.asyncio
async def test_find_by_chat_id_paginates(repo: MessageRepository) -> None:
    await _seed_timeline(repo, 5)
    await _seed_timeline(repo, 2, chat_id=OTHER_CHAT)

    page = await repo.find_by_chat_id(CHAT, FindOptions(limit=2, offset=1))

    assert [message.id for message in page] == [f"{CHAT}-3", f"{CHAT}-2"]
    assert all(message.chat_id == CHAT for message in await repo.find_by_chat_id(CHAT))


@pytest.mark.asyncio
async def test_find_recent_limits_results(repo: MessageRepository) -> None:
    await _seed_timeline(repo, 12)

    recent = await repo.find_recent(CHAT)
    latest_three = await repo.find_recent(CHAT, limit=3)

    assert len(recent) == 10
    assert recent[0].id == f"{CHAT}-11"
    assert [message.id for message in latest_three] == [f"{CHAT}-11", f"{CHAT}-10", f"{CHAT}-9"]


@pytest.mark.asyncio
async def test_find_by_date_range_is_inclusive(repo: MessageRepository) -> None:
    await _seed_timeline(repo, 5)

    window = await repo.find_by_date_range(
        BASE_TIME + timedelta(minutes=1),
        BASE_TIME + timedelta(minutes=3),
    )

    assert [message.id for message in window] == [f"{CHAT}-3", f"{CHAT}-2", f"{CHAT}-1"]


@pytest.mark.asyncio
async def test_update_ack(repo: MessageRepository) -> None:
    await repo.save(make_message("m1"))

    await repo.update_ack("m1", AckLevel.READ)

    stored = await repo.find_by_id("m1")
    assert stored is not None
    assert stored.ack is AckLevel.READ


@pytest.mark.asyncio
async def test_revoked_messages_keep_their_body(repo: MessageRepository) -> None:
    await _seed_timeline(repo, 3)

    assert await repo.mark_revoked(f"{CHAT}-1") is True
    assert await repo.mark_revoked("missing") is False

    # a later upsert of the same message must not clear the flag
    await repo.save(make_message(f"{CHAT}-1", body="message 1", timestamp=BASE_TIME))

    revoked = await repo.find_revoked()
    assert [message.id for message in revoked] == [f"{CHAT}-1"]
    assert revoked[0].body == "message 1"


@pytest.mark.asyncio
async def test_stats_by_chat(repo: MessageRepository) -> None:
    await repo.save(make_message("m1", body="/help"))
    await repo.save(make_message("m2", body="!ping", from_me=True))
    await repo.save(make_message("m3", body="photo", type=MessageType.IMAGE))
    await repo.save(make_message("m4", body="ok", from_me=True))
    await repo.save(make_message("m5", chat_id=OTHER_CHAT, body="/help"))

    stats = await repo.get_stats_by_chat(CHAT)

    assert stats == MessageStats(total=4, received=2, sent=2, media=1, commands=2)


@pytest.mark.asyncio
async def test_stats_for_empty_chat_are_zero(repo: MessageRepository) -> None:
    assert await repo.get_stats_by_chat("nobody@c.us") == MessageStats()


@pytest.mark.asyncio
async def test_search_filters_by_body_and_chat(repo: MessageRepository) -> None:
    await repo.save(make_message("m1", body="Dinner at 8?"))
    later = BASE_TIME + timedelta(minutes=1)
    await repo.save(make_message("m2", body="no dinner today", timestamp=later))
    await repo.save(make_message("m3", chat_id=OTHER_CHAT, body="dinner plans"))

    everywhere = await repo.search("dinner")
    in_chat = await repo.search("dinner", chat_id=CHAT)

    assert {message.id for message in everywhere} == {"m1", "m2", "m3"}
    assert [message.id for message in in_chat] == ["m2", "m1"]


@pytest.mark.asyncio
async def test_search_is_capped(repo: MessageRepository) -> None:
    await _seed_timeline(repo, 105)

    assert len(await repo.search("message")) == 100


@pytest.mark.asyncio
async def test_satisfies_generic_repository_contract(db_session: AsyncSession) -> None:
    repo: Repository[Message, str] = MessageRepository(db_session)
    message = make_message("m1")

    await repo.save(message)

    assert await repo.find_by_id("m1") == message
    assert await repo.count({"chatId": CHAT}) == 1
    assert await repo.delete("m1") is True
    assert await repo.exists("m1") is False
