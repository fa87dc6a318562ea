# tests/conftest.py

from __future__ import annotations

from typing import List

import pytest
import pytest_asyncio

from consistify.models.goal import Goal
from consistify.models.task import Task, TaskStatus
from consistify.models.user import User
from consistify.repositories.memory import MemoryStore
from consistify.services.goals import new_goal
from consistify.services.scheduler import ONE_DAY

from fakes import START, FakeClock


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


async def add_user(store: MemoryStore, name: str, *, visible: bool = True, reminders: bool = True) -> User:
    return await store.users.add(User(
        google_id=f"google-{name.lower()}",
        email=f"{name.lower()}@consistify.app",
        name=name,
        picture=None,
        show_in_activity_feed=visible,
        reminder_enabled=reminders,
        timezone="UTC",
    ))


async def add_goal(
    store: MemoryStore,
    user: User,
    titles: List[str],
    *,
    goal_title: str = "Python",
    items_per_task: int = 1,
) -> Goal:
    """Active goal with one pending task per title, scheduled a day apart from START."""
    goal = await store.goals.add(new_goal(
        user.id,
        type="learning",
        title=goal_title,
        description=None,
        total_days=len(titles),
        daily_minutes=30,
    ))
    for day, title in enumerate(titles, start=1):
        await store.tasks.add(Task(
            goal_id=goal.id,
            user_id=user.id,
            day_number=day,
            title=title,
            description=f"Focus on {title}",
            estimated_minutes=30,
            phase="Phase 1: Foundation",
            status=TaskStatus.PENDING.value,
            scheduled_date=START + ONE_DAY * (day - 1),
            action_items=[{"text": f"{title} step {i + 1}", "completed": False} for i in range(items_per_task)],
            resources=[],
        ))
    return goal


async def check_all_items(store: MemoryStore, task: Task) -> None:
    task.action_items = [{**item, "completed": True} for item in task.action_items]
    await store.tasks.save(task)


@pytest_asyncio.fixture()
async def ada(store: MemoryStore) -> User:
    return await add_user(store, "Ada")


@pytest_asyncio.fixture()
async def grace(store: MemoryStore) -> User:
    return await add_user(store, "Grace")
