# consistify/core/deps.py
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from consistify.database import AsyncSessionLocal, get_db
from consistify.repositories.sql import SqlStore
from consistify.services.activity import ActivityPublisher, SessionActivityPublisher


async def get_store(db: AsyncSession = Depends(get_db)) -> SqlStore:
    return SqlStore(db)


def get_activity_publisher() -> ActivityPublisher:
    return SessionActivityPublisher(AsyncSessionLocal)
