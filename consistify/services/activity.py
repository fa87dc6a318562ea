# consistify/services/activity.py
"""
Activity emitter.

The scheduler only returns ActivityEvents; they are published after its
transaction has committed, typically from a FastAPI background task. A
failed publish is logged and dropped so it can never undo a completion.
"""
import logging
from typing import Iterable, List, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from consistify.models.activity import Activity
from consistify.repositories.base import Store
from consistify.schemas.activity import ActivityEvent

logger = logging.getLogger(__name__)

FEED_LIMIT = 50


class ActivityPublisher(Protocol):
    async def publish(self, event: ActivityEvent) -> None: ...


def activity_from_event(event: ActivityEvent) -> Activity:
    return Activity(
        user_id=event.user_id,
        goal_id=event.goal_id,
        type=event.type,
        message=event.message,
        task_title=event.task_title,
        skill_name=event.skill_name,
        progress_percent=event.progress_percent,
        is_public=True,
        created_at=event.timestamp,
    )


class SessionActivityPublisher:
    """Writes each event as an activities row in its own session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def publish(self, event: ActivityEvent) -> None:
        async with self.session_factory() as session:
            session.add(activity_from_event(event))
            await session.commit()


async def dispatch_activity_events(publisher: ActivityPublisher, events: Iterable[ActivityEvent]) -> int:
    """Publish best-effort. Returns how many events were delivered."""
    delivered = 0
    for event in events:
        try:
            await publisher.publish(event)
        except Exception:
            logger.exception("Activity publish failed user=%s goal=%s", event.user_id, event.goal_id)
            continue
        delivered += 1
    return delivered


async def list_feed(store: Store, limit: int = FEED_LIMIT) -> List[Activity]:
    return await store.activities.list_public(limit)
