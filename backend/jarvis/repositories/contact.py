"""SQLite-backed Contact repository."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, cast

from sqlalchemy import Select, Table, delete, func, literal, or_, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from jarvis.domain.contact import Contact
from jarvis.models.contact import ContactRecord
from jarvis.repositories.base import BaseRepository, FindOptions, filter_flag, resolve_options
from jarvis.repositories.mappers import ContactMapper, instant_to_text

logger = logging.getLogger(__name__)

contacts = cast(Table, ContactRecord.__table__)

SEARCH_LIMIT = 50

# count() filter keys -> flag column; snake and camel case are both accepted
_COUNT_FLAGS: dict[str, tuple[str, ...]] = {
    "is_blocked": ("is_blocked", "isBlocked"),
    "is_business": ("is_business", "isBusiness"),
    "is_group": ("is_group", "isGroup"),
}


class ContactRepository(BaseRepository[Contact]):
    """Persists contacts one row per identity.

    ``find_all`` lists by most recent interaction while ``get_all`` lists by
    name; both orderings are part of the contract.
    """

    table_name = "contacts"

    async def find_by_id(self, id: str) -> Contact | None:  # noqa: A002
        async with self._storage_errors("find_by_id"):
            return await self._fetch_one(select(contacts).where(contacts.c.id == id))

    async def find_all(self, options: FindOptions | None = None) -> list[Contact]:
        opts = resolve_options(options)
        stmt = (
            select(contacts)
            .order_by(contacts.c.last_interaction.desc())
            .limit(opts.limit)
            .offset(opts.offset)
        )
        async with self._storage_errors("find_all"):
            return await self._fetch_many(stmt)

    async def save(self, entity: Contact) -> None:
        row = ContactMapper.to_row(entity)
        stmt = sqlite_insert(contacts).values(**row, updated_at=func.now())
        stmt = stmt.on_conflict_do_update(
            index_elements=[contacts.c.id],
            set_={
                **{column: stmt.excluded[column] for column in row if column != "id"},
                "updated_at": func.now(),
            },
        )
        async with self._storage_errors("save"):
            await self.session.execute(stmt)
            await self._commit()
        logger.debug("Contact saved", extra={"contact_id": entity.id})

    async def delete(self, id: str) -> bool:  # noqa: A002
        async with self._storage_errors("delete"):
            result = await self.session.execute(delete(contacts).where(contacts.c.id == id))
            await self._commit()
        return bool(result.rowcount)

    async def exists(self, id: str) -> bool:  # noqa: A002
        stmt = select(literal(1)).select_from(contacts).where(contacts.c.id == id).limit(1)
        async with self._storage_errors("exists"):
            result = await self.session.execute(stmt)
            return result.scalar() is not None

    async def count(self, filter: Mapping[str, Any] | None = None) -> int:  # noqa: A002
        """Count contacts; recognised filter keys are the boolean flags, others are ignored."""
        stmt = select(func.count()).select_from(contacts)
        for column, keys in _COUNT_FLAGS.items():
            flag = filter_flag(filter, *keys)
            if flag is not None:
                stmt = stmt.where(contacts.c[column] == int(flag))

        async with self._storage_errors("count"):
            result = await self.session.execute(stmt)
            return int(result.scalar_one())

    async def find_by_phone_number(self, phone: str) -> Contact | None:
        """Match the stored phone number or an identity of the form ``<phone>@<server>``."""
        stmt = (
            select(contacts)
            .where(
                or_(
                    contacts.c.phone_number == phone,
                    contacts.c.id.startswith(f"{phone}@", autoescape=True),
                )
            )
            .limit(1)
        )
        async with self._storage_errors("find_by_phone_number"):
            return await self._fetch_one(stmt)

    async def find_active(self, since: datetime) -> list[Contact]:
        stmt = (
            select(contacts)
            .where(contacts.c.last_interaction >= instant_to_text(since))
            .order_by(contacts.c.last_interaction.desc())
        )
        async with self._storage_errors("find_active"):
            return await self._fetch_many(stmt)

    async def update_last_interaction(self, id: str, when: datetime) -> None:  # noqa: A002
        stmt = (
            update(contacts)
            .where(contacts.c.id == id)
            .values(last_interaction=instant_to_text(when), updated_at=func.now())
        )
        async with self._storage_errors("update_last_interaction"):
            await self.session.execute(stmt)
            await self._commit()

    async def search(self, query: str) -> list[Contact]:
        """Substring match on name, push name and phone number (case follows SQLite LIKE)."""
        stmt = (
            select(contacts)
            .where(
                or_(
                    contacts.c.name.contains(query, autoescape=True),
                    contacts.c.push_name.contains(query, autoescape=True),
                    contacts.c.phone_number.contains(query, autoescape=True),
                )
            )
            .order_by(contacts.c.name.asc())
            .limit(SEARCH_LIMIT)
        )
        async with self._storage_errors("search"):
            return await self._fetch_many(stmt)

    async def find_blocked(self) -> list[Contact]:
        stmt = select(contacts).where(contacts.c.is_blocked == 1)
        async with self._storage_errors("find_blocked"):
            return await self._fetch_many(stmt)

    async def get_all(self) -> list[Contact]:
        stmt = select(contacts).order_by(contacts.c.name.asc())
        async with self._storage_errors("get_all"):
            return await self._fetch_many(stmt)

    async def _fetch_one(self, stmt: Select[Any]) -> Contact | None:
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        return ContactMapper.to_entity(row) if row is not None else None

    async def _fetch_many(self, stmt: Select[Any]) -> list[Contact]:
        result = await self.session.execute(stmt)
        return [ContactMapper.to_entity(row) for row in result.mappings()]


__all__ = ["ContactRepository", "SEARCH_LIMIT"]
