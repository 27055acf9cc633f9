"""
Shared plumbing for the store adapters.
"""

from typing import Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from tracking_backend.app.core.exceptions import StoreError
from tracking_backend.app.core.reliability import run_store_call

T = TypeVar("T")


class BaseRepository:
    """Repository bound to one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def detach(self, instance) -> None:
        """
        Expunge a loaded row so a later rollback cannot expire it; its
        attributes stay readable outside the session.
        """
        if instance in self.db:
            self.db.expunge(instance)

    async def _run(self, operation: str, func: Callable[[], Awaitable[T]]) -> T:
        """
        Run a store call under the configured timeout.

        A failed call leaves the session in an aborted transaction, so it is
        rolled back before the StoreError propagates.
        """
        try:
            return await run_store_call(operation, func)
        except StoreError:
            await self.db.rollback()
            raise
