# consistify/repositories/memory.py
"""
Dict-backed Store.

Holds transient ORM instances, so services and tests work with the same
objects they would get from SqlStore. There is no rollback: services check
every guard before their first write.
"""
from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Dict, List, Optional

from consistify.models.activity import Activity
from consistify.models.goal import Goal, GoalInvite, InviteStatus
from consistify.models.task import Task, TaskStatus
from consistify.models.user import User


def _stamp(obj, ids) -> None:
    if obj.id is None:
        obj.id = next(ids)
    if getattr(obj, "created_at", None) is None:
        obj.created_at = datetime.now(timezone.utc)


class MemoryGoalRepository:
    def __init__(self):
        self.rows: Dict[int, Goal] = {}
        self._ids = itertools.count(1)

    async def get(self, goal_id: int) -> Optional[Goal]:
        return self.rows.get(goal_id)

    async def get_for_user(self, goal_id: int, user_id: int) -> Optional[Goal]:
        goal = self.rows.get(goal_id)
        return goal if goal is not None and goal.user_id == user_id else None

    async def get_active_for_user(self, user_id: int) -> Optional[Goal]:
        active = [
            g for g in self.rows.values()
            if g.user_id == user_id and g.is_active and not g.is_completed
        ]
        return max(active, key=lambda g: g.id) if active else None

    async def list_for_user(self, user_id: int) -> List[Goal]:
        goals = [g for g in self.rows.values() if g.user_id == user_id]
        return sorted(goals, key=lambda g: g.id, reverse=True)

    async def list_linked_to(self, goal_id: int) -> List[Goal]:
        return [g for g in self.rows.values() if g.partner_goal_id == goal_id]

    async def add(self, goal: Goal) -> Goal:
        _stamp(goal, self._ids)
        self.rows[goal.id] = goal
        return goal

    async def save(self, goal: Goal) -> Goal:
        self.rows[goal.id] = goal
        return goal

    async def delete(self, goal: Goal) -> None:
        self.rows.pop(goal.id, None)

    async def deactivate_all(self, user_id: int) -> None:
        for goal in self.rows.values():
            if goal.user_id == user_id:
                goal.is_active = False

    async def increment_counters(
        self, goal: Goal, *, completed_days: int = 0, skipped_days: int = 0, current_day: int = 0
    ) -> Goal:
        goal.completed_days += completed_days
        goal.skipped_days += skipped_days
        goal.current_day += current_day
        return goal


class MemoryTaskRepository:
    def __init__(self):
        self.rows: Dict[int, Task] = {}
        self._ids = itertools.count(1)

    async def get(self, task_id: int) -> Optional[Task]:
        return self.rows.get(task_id)

    async def get_for_user(self, task_id: int, user_id: int) -> Optional[Task]:
        task = self.rows.get(task_id)
        return task if task is not None and task.user_id == user_id else None

    async def list_for_goal(self, goal_id: int, status: Optional[TaskStatus] = None) -> List[Task]:
        tasks = [
            t for t in self.rows.values()
            if t.goal_id == goal_id and (status is None or t.status == status)
        ]
        return sorted(tasks, key=lambda t: (t.day_number, t.id))

    async def first_pending(self, goal_id: int) -> Optional[Task]:
        pending = await self.list_for_goal(goal_id, TaskStatus.PENDING)
        return pending[0] if pending else None

    async def count(self, goal_id: int, status: Optional[TaskStatus] = None) -> int:
        return len(await self.list_for_goal(goal_id, status))

    async def add(self, task: Task) -> Task:
        _stamp(task, self._ids)
        self.rows[task.id] = task
        return task

    async def add_many(self, tasks: List[Task]) -> List[Task]:
        for task in tasks:
            await self.add(task)
        return tasks

    async def save(self, task: Task) -> Task:
        self.rows[task.id] = task
        return task

    async def delete_for_goal(self, goal_id: int) -> None:
        for task_id in [t.id for t in self.rows.values() if t.goal_id == goal_id]:
            del self.rows[task_id]

    async def transition(self, task: Task, status: TaskStatus, at: datetime) -> bool:
        stored = self.rows.get(task.id)
        if stored is None or stored.status != TaskStatus.PENDING:
            return False
        stored.status = status.value
        if status == TaskStatus.COMPLETED:
            stored.completed_at = at
        elif status == TaskStatus.SKIPPED:
            stored.skipped_at = at
        return True


class MemoryInviteRepository:
    def __init__(self):
        self.rows: Dict[int, GoalInvite] = {}
        self._ids = itertools.count(1)

    async def get(self, invite_id: int) -> Optional[GoalInvite]:
        return self.rows.get(invite_id)

    async def list_pending_for_user(self, user_id: int) -> List[GoalInvite]:
        invites = [
            i for i in self.rows.values()
            if i.to_user_id == user_id and i.status == InviteStatus.PENDING
        ]
        return sorted(invites, key=lambda i: i.id, reverse=True)

    async def add(self, invite: GoalInvite) -> GoalInvite:
        _stamp(invite, self._ids)
        self.rows[invite.id] = invite
        return invite

    async def save(self, invite: GoalInvite) -> GoalInvite:
        self.rows[invite.id] = invite
        return invite

    async def resolve(self, invite: GoalInvite, status: InviteStatus, at: datetime) -> bool:
        stored = self.rows.get(invite.id)
        if stored is None or stored.status != InviteStatus.PENDING:
            return False
        stored.status = status.value
        stored.resolved_at = at
        return True

    async def detach_goal(self, goal_id: int) -> None:
        for invite in self.rows.values():
            if invite.source_goal_id == goal_id:
                invite.source_goal_id = None


class MemoryUserRepository:
    def __init__(self):
        self.rows: Dict[int, User] = {}
        self._ids = itertools.count(1)

    async def get(self, user_id: int) -> Optional[User]:
        return self.rows.get(user_id)

    async def get_by_google_id(self, google_id: str) -> Optional[User]:
        return next((u for u in self.rows.values() if u.google_id == google_id), None)

    async def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.rows.values() if u.email == email), None)

    async def list_with_reminders(self) -> List[User]:
        return sorted((u for u in self.rows.values() if u.reminder_enabled), key=lambda u: u.id)

    async def add(self, user: User) -> User:
        _stamp(user, self._ids)
        self.rows[user.id] = user
        return user

    async def save(self, user: User) -> User:
        self.rows[user.id] = user
        return user


class MemoryActivityRepository:
    def __init__(self):
        self.rows: List[Activity] = []
        self._ids = itertools.count(1)

    async def add(self, activity: Activity) -> Activity:
        _stamp(activity, self._ids)
        self.rows.append(activity)
        return activity

    async def list_public(self, limit: int = 50) -> List[Activity]:
        public = [a for a in self.rows if a.is_public]
        return sorted(public, key=lambda a: a.id, reverse=True)[:limit]


class MemoryStore:
    def __init__(self):
        self.goals = MemoryGoalRepository()
        self.tasks = MemoryTaskRepository()
        self.invites = MemoryInviteRepository()
        self.users = MemoryUserRepository()
        self.activities = MemoryActivityRepository()
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1
