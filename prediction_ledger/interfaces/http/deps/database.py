"""Request-scoped database session."""

from collections.abc import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from prediction_ledger.core.container import ApplicationContainer, get_app_container


async def get_db_session(container: ApplicationContainer = Depends(get_app_container)) -> AsyncIterator[AsyncSession]:
    async with container.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


__all__ = ["get_db_session"]
