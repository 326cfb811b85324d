from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Generic, Sequence, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from civic_market.core.errors import Conflict, PersistenceFailure

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class SqlRepository:
    """
    Persistence boundary over a request-scoped AsyncSession.
    Repositories built on the same session share one transaction; whoever
    orchestrates the operation decides when to commit.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def guard(self, action: str) -> AsyncIterator[None]:
        """Translate driver errors into the domain taxonomy, rolling back first."""
        try:
            yield
        except IntegrityError as e:
            await self.db.rollback()
            log.warning("%s failed: integrity error: %s", action, e.orig)
            raise Conflict() from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            log.exception("%s failed: persistence error", action)
            raise PersistenceFailure() from e

    async def commit(self) -> None:
        async with self.guard("commit"):
            await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
