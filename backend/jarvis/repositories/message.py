"""SQLite-backed Message repository."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, cast

from sqlalchemy import Select, Table, case, delete, func, literal, or_, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from jarvis.domain.message import COMMAND_PREFIXES, AckLevel, Message
from jarvis.models.message import MessageRecord
from jarvis.repositories.base import BaseRepository, FindOptions, resolve_options
from jarvis.repositories.mappers import MessageMapper, instant_to_millis

messages = cast(Table, MessageRecord.__table__)

SEARCH_LIMIT = 100
RECENT_LIMIT = 10


@dataclass(frozen=True, slots=True)
class MessageStats:
    total: int = 0
    received: int = 0
    sent: int = 0
    media: int = 0
    commands: int = 0


class MessageRepository(BaseRepository[Message]):
    """Persists chat messages; listings are newest first."""

    table_name = "messages"

    async def find_by_id(self, id: str) -> Message | None:  # noqa: A002
        async with self._storage_errors("find_by_id"):
            result = await self.session.execute(select(messages).where(messages.c.id == id))
            row = result.mappings().first()
            return MessageMapper.to_entity(row) if row is not None else None

    async def find_all(self, options: FindOptions | None = None) -> list[Message]:
        opts = resolve_options(options)
        stmt = (
            select(messages)
            .order_by(messages.c.timestamp.desc())
            .limit(opts.limit)
            .offset(opts.offset)
        )
        async with self._storage_errors("find_all"):
            return await self._fetch_many(stmt)

    async def save(self, entity: Message) -> None:
        """Upsert; ``is_deleted`` is kept on conflict since the entity does not carry it."""
        row = MessageMapper.to_row(entity)
        stmt = sqlite_insert(messages).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[messages.c.id],
            set_={column: stmt.excluded[column] for column in row if column != "id"},
        )
        async with self._storage_errors("save"):
            await self.session.execute(stmt)
            await self._commit()

    async def delete(self, id: str) -> bool:  # noqa: A002
        async with self._storage_errors("delete"):
            result = await self.session.execute(delete(messages).where(messages.c.id == id))
            await self._commit()
        return bool(result.rowcount)

    async def exists(self, id: str) -> bool:  # noqa: A002
        stmt = select(literal(1)).select_from(messages).where(messages.c.id == id).limit(1)
        async with self._storage_errors("exists"):
            result = await self.session.execute(stmt)
            return result.scalar() is not None

    async def count(self, filter: Mapping[str, Any] | None = None) -> int:  # noqa: A002
        stmt = select(func.count()).select_from(messages)
        chat_id = None
        if filter:
            chat_id = filter.get("chat_id") or filter.get("chatId")
        if chat_id:
            stmt = stmt.where(messages.c.chat_id == chat_id)

        async with self._storage_errors("count"):
            result = await self.session.execute(stmt)
            return int(result.scalar_one())

    async def find_by_chat_id(
        self,
        chat_id: str,
        options: FindOptions | None = None,
    ) -> list[Message]:
        opts = resolve_options(options)
        stmt = (
            select(messages)
            .where(messages.c.chat_id == chat_id)
            .order_by(messages.c.timestamp.desc())
            .limit(opts.limit)
            .offset(opts.offset)
        )
        async with self._storage_errors("find_by_chat_id"):
            return await self._fetch_many(stmt)

    async def find_by_date_range(self, start: datetime, end: datetime) -> list[Message]:
        """Messages with ``start <= timestamp <= end``, newest first."""
        stmt = (
            select(messages)
            .where(
                messages.c.timestamp >= instant_to_millis(start),
                messages.c.timestamp <= instant_to_millis(end),
            )
            .order_by(messages.c.timestamp.desc())
        )
        async with self._storage_errors("find_by_date_range"):
            return await self._fetch_many(stmt)

    async def find_recent(self, chat_id: str, limit: int = RECENT_LIMIT) -> list[Message]:
        return await self.find_by_chat_id(chat_id, FindOptions(limit=limit))

    async def update_ack(self, id: str, ack: AckLevel) -> None:  # noqa: A002
        stmt = update(messages).where(messages.c.id == id).values(ack=int(ack))
        async with self._storage_errors("update_ack"):
            await self.session.execute(stmt)
            await self._commit()

    async def mark_revoked(self, id: str) -> bool:  # noqa: A002
        """Flag a message as deleted by its sender, keeping its stored body."""
        stmt = update(messages).where(messages.c.id == id).values(is_deleted=1)
        async with self._storage_errors("mark_revoked"):
            result = await self.session.execute(stmt)
            await self._commit()
        return bool(result.rowcount)

    async def find_revoked(self) -> list[Message]:
        stmt = (
            select(messages)
            .where(messages.c.is_deleted == 1)
            .order_by(messages.c.timestamp.desc())
        )
        async with self._storage_errors("find_revoked"):
            return await self._fetch_many(stmt)

    async def get_stats_by_chat(self, chat_id: str) -> MessageStats:
        is_command = or_(*(messages.c.body.startswith(prefix) for prefix in COMMAND_PREFIXES))
        stmt = select(
            func.count().label("total"),
            func.sum(case((messages.c.from_me == 0, 1), else_=0)).label("received"),
            func.sum(case((messages.c.from_me == 1, 1), else_=0)).label("sent"),
            func.sum(case((messages.c.has_media == 1, 1), else_=0)).label("media"),
            func.sum(case((is_command, 1), else_=0)).label("commands"),
        ).where(messages.c.chat_id == chat_id)

        async with self._storage_errors("get_stats_by_chat"):
            result = await self.session.execute(stmt)
            row = result.mappings().one()

        return MessageStats(
            total=int(row["total"] or 0),
            received=int(row["received"] or 0),
            sent=int(row["sent"] or 0),
            media=int(row["media"] or 0),
            commands=int(row["commands"] or 0),
        )

    async def search(self, query: str, chat_id: str | None = None) -> list[Message]:
        stmt = select(messages).where(messages.c.body.contains(query, autoescape=True))
        if chat_id:
            stmt = stmt.where(messages.c.chat_id == chat_id)
        stmt = stmt.order_by(messages.c.timestamp.desc()).limit(SEARCH_LIMIT)

        async with self._storage_errors("search"):
            return await self._fetch_many(stmt)

    async def _fetch_many(self, stmt: Select[Any]) -> list[Message]:
        result = await self.session.execute(stmt)
        return [MessageMapper.to_entity(row) for row in result.mappings()]


__all__ = ["MessageRepository", "MessageStats"]
