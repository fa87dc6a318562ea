# consistify/repositories/base.py
"""
Storage interfaces used by the services.

The services never touch an AsyncSession directly: they receive a ``Store``
(unit of work) whose repositories are backed either by SQLAlchemy
(``SqlStore``) or by plain dicts (``MemoryStore``).
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from consistify.models.activity import Activity
from consistify.models.goal import Goal, GoalInvite, InviteStatus
from consistify.models.task import Task, TaskStatus
from consistify.models.user import User


class GoalRepository(Protocol):
    async def get(self, goal_id: int) -> Optional[Goal]: ...
    async def get_for_user(self, goal_id: int, user_id: int) -> Optional[Goal]: ...
    async def get_active_for_user(self, user_id: int) -> Optional[Goal]: ...
    async def list_for_user(self, user_id: int) -> List[Goal]: ...
    async def list_linked_to(self, goal_id: int) -> List[Goal]: ...
    async def add(self, goal: Goal) -> Goal: ...
    async def save(self, goal: Goal) -> Goal: ...
    async def delete(self, goal: Goal) -> None: ...
    async def deactivate_all(self, user_id: int) -> None: ...

    async def increment_counters(
        self, goal: Goal, *, completed_days: int = 0, skipped_days: int = 0, current_day: int = 0
    ) -> Goal:
        """Add to the goal counters in place and return the refreshed goal."""
        ...


class TaskRepository(Protocol):
    async def get(self, task_id: int) -> Optional[Task]: ...
    async def get_for_user(self, task_id: int, user_id: int) -> Optional[Task]: ...

    async def list_for_goal(self, goal_id: int, status: Optional[TaskStatus] = None) -> List[Task]:
        """Tasks of a goal ordered by day_number, then creation order."""
        ...

    async def first_pending(self, goal_id: int) -> Optional[Task]: ...
    async def count(self, goal_id: int, status: Optional[TaskStatus] = None) -> int: ...
    async def add(self, task: Task) -> Task: ...
    async def add_many(self, tasks: List[Task]) -> List[Task]: ...
    async def save(self, task: Task) -> Task: ...
    async def delete_for_goal(self, goal_id: int) -> None: ...

    async def transition(self, task: Task, status: TaskStatus, at: datetime) -> bool:
        """
        Move a pending task to a terminal status.

        Returns False when the task was no longer pending, in which case
        nothing is written.
        """
        ...


class InviteRepository(Protocol):
    async def get(self, invite_id: int) -> Optional[GoalInvite]: ...
    async def list_pending_for_user(self, user_id: int) -> List[GoalInvite]: ...
    async def add(self, invite: GoalInvite) -> GoalInvite: ...
    async def save(self, invite: GoalInvite) -> GoalInvite: ...
    async def resolve(self, invite: GoalInvite, status: InviteStatus, at: datetime) -> bool: ...
    async def detach_goal(self, goal_id: int) -> None: ...


class UserRepository(Protocol):
    async def get(self, user_id: int) -> Optional[User]: ...
    async def get_by_google_id(self, google_id: str) -> Optional[User]: ...
    async def get_by_email(self, email: str) -> Optional[User]: ...
    async def list_with_reminders(self) -> List[User]: ...
    async def add(self, user: User) -> User: ...
    async def save(self, user: User) -> User: ...


class ActivityRepository(Protocol):
    async def add(self, activity: Activity) -> Activity: ...
    async def list_public(self, limit: int = 50) -> List[Activity]: ...


class Store(Protocol):
    goals: GoalRepository
    tasks: TaskRepository
    invites: InviteRepository
    users: UserRepository
    activities: ActivityRepository

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
