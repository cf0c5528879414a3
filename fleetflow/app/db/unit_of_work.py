"""
Unit of work for multi-row fleet transitions.

One UnitOfWork is one transaction: begin, read-with-lock, validate,
write, commit. Any exception rolls the whole unit back.
"""

import logging
from typing import Any, List, Optional, Type

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleetflow.app.db.session import utcnow
from fleetflow.app.domain.fleet.errors import (
    CoordinatorError, ConflictError, NotFoundError, StorageError
)

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Transaction-scoped context passed to coordinator operations.

    Usage:
        async with UnitOfWork(session_factory) as uow:
            vehicle = await uow.get_for_update(Vehicle, vehicle_id, "Vehicle")
            ...
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "UnitOfWork":
        self.session = self._session_factory()
        try:
            await self.session.begin()
        except DBAPIError as exc:
            await self.session.close()
            raise StorageError(f"Could not open transaction: {exc.__class__.__name__}") from exc
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc_type is None:
                try:
                    await self.session.commit()
                except IntegrityError as commit_exc:
                    await self.session.rollback()
                    raise ConflictError(
                        "Change conflicts with the current state of the fleet",
                        {"reason": str(commit_exc.orig)}
                    ) from commit_exc
                except DBAPIError as commit_exc:
                    await self.session.rollback()
                    raise StorageError(f"Commit failed: {commit_exc.__class__.__name__}") from commit_exc
                return False

            await self.session.rollback()

            if isinstance(exc, CoordinatorError):
                logger.warning("Rejected: %s", exc.message)
                return False
            if isinstance(exc, IntegrityError):
                raise ConflictError(
                    "Change conflicts with the current state of the fleet",
                    {"reason": str(exc.orig)}
                ) from exc
            if isinstance(exc, DBAPIError):
                logger.error("Storage failure, unit of work rolled back: %s", exc)
                raise StorageError(f"Storage failure: {exc.__class__.__name__}") from exc
            return False
        finally:
            await self.session.close()

    async def get(self, model: Type, entity_id: int):
        """Plain read by primary key, no lock."""
        result = await self.session.execute(select(model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def get_for_update(self, model: Type, entity_id: int, resource: str):
        """
        Read a row by primary key and hold it until commit.

        Emits SELECT ... FOR UPDATE where the dialect supports it. On SQLite
        the whole transaction already holds the write lock.
        """
        result = await self.session.execute(
            select(model)
            .where(model.id == entity_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        entity = result.scalar_one_or_none()
        if entity is None:
            raise NotFoundError(resource, entity_id)
        return entity

    async def select_for_update(self, statement) -> List[Any]:
        result = await self.session.execute(
            statement.with_for_update().execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def count(self, statement) -> int:
        result = await self.session.execute(statement)
        return result.scalar() or 0

    async def compare_and_set_status(self, model: Type, entity_id: int, expected, new) -> bool:
        """
        Conditional status update keyed by primary id.

        Returns False when the row is no longer in the expected status,
        meaning another unit of work claimed it first.
        """
        result = await self.session.execute(
            update(model)
            .where(model.id == entity_id, model.status == expected)
            .values(status=new, updated_at=utcnow())
        )
        return result.rowcount == 1

    def add(self, entity) -> None:
        self.session.add(entity)

    async def flush(self) -> None:
        await self.session.flush()

    async def delete(self, model: Type, entity_id: int) -> None:
        await self.session.execute(delete(model).where(model.id == entity_id))


def count_of(model: Type):
    """Shorthand for SELECT count(id) FROM model."""
    return select(func.count(model.id))
