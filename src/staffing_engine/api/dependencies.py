"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from staffing_engine.catalog.rate_catalog import RateRuleCatalog
from staffing_engine.database import get_session
from staffing_engine.stores.sql import SqlRecordStore


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency; commits when the request succeeds."""
    async with get_session() as session:
        yield session


async def get_store(session: Annotated[AsyncSession, Depends(get_db_session)]) -> SqlRecordStore:
    return SqlRecordStore(session)


async def get_catalog(store: Annotated[SqlRecordStore, Depends(get_store)]) -> RateRuleCatalog:
    return RateRuleCatalog(store)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Store = Annotated[SqlRecordStore, Depends(get_store)]
Catalog = Annotated[RateRuleCatalog, Depends(get_catalog)]
