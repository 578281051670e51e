from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.db.session import SessionLocal
from catalog.services.klara_client import KlaraClient
from catalog.utils.logging import get_logger

logger = get_logger()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.exception(f"Database transaction rolled back: {e}")
            raise
        finally:
            await session.close()


def get_klara_client(request: Request) -> KlaraClient:
    return request.app.state.klara_client


DBDependency = Annotated[AsyncSession, Depends(get_db)]
KlaraDependency = Annotated[KlaraClient, Depends(get_klara_client)]
