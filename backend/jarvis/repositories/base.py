"""Generic repository contract and shared helpers for SQLite repositories."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jarvis.core.errors import ErrorFactory

EntityT = TypeVar("EntityT")
IdT = TypeVar("IdT")

DEFAULT_LIMIT = 100

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FindOptions:
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ErrorFactory.validation("limit must be a positive integer", {"limit": self.limit})
        if self.offset < 0:
            raise ErrorFactory.validation("offset must be >= 0", {"offset": self.offset})


class Repository(Protocol[EntityT, IdT]):
    """Persistence gateway for one entity type.

    Repositories own no entities: every read rebuilds a fresh, validated
    instance from storage. Absence is ``None``, never a NOT_FOUND error.
    Concrete repositories add their own query methods on top of these.
    """

    async def find_by_id(self, id: IdT) -> EntityT | None: ...  # noqa: A002

    async def find_all(self, options: FindOptions | None = None) -> Sequence[EntityT]: ...

    async def save(self, entity: EntityT) -> None:
        """Insert, or overwrite every persisted column of the row with the same identity."""
        ...

    async def delete(self, id: IdT) -> bool: ...  # noqa: A002

    async def exists(self, id: IdT) -> bool: ...  # noqa: A002

    async def count(self, filter: Mapping[str, Any] | None = None) -> int: ...  # noqa: A002


class BaseRepository(Generic[EntityT]):
    """Holds the injected AsyncSession and maps driver failures to STORAGE errors.

    Each public operation issues a single statement and commits it; nothing
    here spans several statements in one transaction.
    """

    table_name: ClassVar[str] = ""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _commit(self) -> None:
        await self.session.commit()

    @asynccontextmanager
    async def _storage_errors(self, operation: str) -> AsyncIterator[None]:
        """Roll back and re-raise driver errors as a STORAGE DomainError."""
        try:
            yield
        except SQLAlchemyError as exc:
            try:
                await self.session.rollback()
            except SQLAlchemyError:
                logger.exception(
                    "Failed to roll back session",
                    extra={"table": self.table_name, "operation": operation},
                )
            logger.error(
                "Storage operation failed",
                exc_info=True,
                extra={"table": self.table_name, "operation": operation},
            )
            raise ErrorFactory.storage(
                f"Storage operation failed: {self.table_name}.{operation}",
                {"table": self.table_name, "operation": operation},
            ) from exc


def resolve_options(options: FindOptions | None) -> FindOptions:
    return options if options is not None else FindOptions()


def filter_flag(filter: Mapping[str, Any] | None, *keys: str) -> bool | None:  # noqa: A002
    """Return the first present key of ``filter`` as a bool, or None when absent."""
    if not filter:
        return None
    for key in keys:
        if key in filter and filter[key] is not None:
            return bool(filter[key])
    return None


__all__ = [
    "BaseRepository",
    "DEFAULT_LIMIT",
    "FindOptions",
    "Repository",
    "filter_flag",
    "resolve_options",
]
