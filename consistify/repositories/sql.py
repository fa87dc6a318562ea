# consistify/repositories/sql.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from consistify.models.activity import Activity
from consistify.models.goal import Goal, GoalInvite, InviteStatus
from consistify.models.task import Task, TaskStatus
from consistify.models.user import User


class SqlGoalRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, goal_id: int) -> Optional[Goal]:
        return await self.db.get(Goal, goal_id)

    async def get_for_user(self, goal_id: int, user_id: int) -> Optional[Goal]:
        result = await self.db.execute(
            select(Goal).where(Goal.id == goal_id, Goal.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_active_for_user(self, user_id: int) -> Optional[Goal]:
        result = await self.db.execute(
            select(Goal)
            .where(Goal.user_id == user_id)
            .where(Goal.is_active.is_(True))
            .where(Goal.is_completed.is_(False))
            .order_by(Goal.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: int) -> List[Goal]:
        result = await self.db.execute(
            select(Goal).where(Goal.user_id == user_id).order_by(Goal.id.desc())
        )
        return list(result.scalars().all())

    async def list_linked_to(self, goal_id: int) -> List[Goal]:
        result = await self.db.execute(select(Goal).where(Goal.partner_goal_id == goal_id))
        return list(result.scalars().all())

    async def add(self, goal: Goal) -> Goal:
        self.db.add(goal)
        await self.db.flush()
        return goal

    async def save(self, goal: Goal) -> Goal:
        self.db.add(goal)
        await self.db.flush()
        return goal

    async def delete(self, goal: Goal) -> None:
        await self.db.delete(goal)
        await self.db.flush()

    async def deactivate_all(self, user_id: int) -> None:
        await self.db.execute(
            update(Goal)
            .where(Goal.user_id == user_id, Goal.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )

    async def increment_counters(
        self, goal: Goal, *, completed_days: int = 0, skipped_days: int = 0, current_day: int = 0
    ) -> Goal:
        # Expression update: concurrent increments never overwrite each other
        await self.db.execute(
            update(Goal)
            .where(Goal.id == goal.id)
            .values(
                completed_days=Goal.completed_days + completed_days,
                skipped_days=Goal.skipped_days + skipped_days,
                current_day=Goal.current_day + current_day,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.refresh(goal)
        return goal


class SqlTaskRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, task_id: int) -> Optional[Task]:
        return await self.db.get(Task, task_id)

    async def get_for_user(self, task_id: int, user_id: int) -> Optional[Task]:
        result = await self.db.execute(
            select(Task).where(Task.id == task_id, Task.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def list_for_goal(self, goal_id: int, status: Optional[TaskStatus] = None) -> List[Task]:
        query = select(Task).where(Task.goal_id == goal_id)
        if status is not None:
            query = query.where(Task.status == status.value)
        result = await self.db.execute(query.order_by(Task.day_number, Task.id))
        return list(result.scalars().all())

    async def first_pending(self, goal_id: int) -> Optional[Task]:
        result = await self.db.execute(
            select(Task)
            .where(Task.goal_id == goal_id, Task.status == TaskStatus.PENDING.value)
            .order_by(Task.day_number, Task.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def count(self, goal_id: int, status: Optional[TaskStatus] = None) -> int:
        query = select(func.count(Task.id)).where(Task.goal_id == goal_id)
        if status is not None:
            query = query.where(Task.status == status.value)
        result = await self.db.execute(query)
        return result.scalar_one() or 0

    async def add(self, task: Task) -> Task:
        self.db.add(task)
        await self.db.flush()
        return task

    async def add_many(self, tasks: List[Task]) -> List[Task]:
        self.db.add_all(tasks)
        await self.db.flush()
        return tasks

    async def save(self, task: Task) -> Task:
        self.db.add(task)
        await self.db.flush()
        return task

    async def delete_for_goal(self, goal_id: int) -> None:
        await self.db.execute(
            delete(Task).where(Task.goal_id == goal_id).execution_options(synchronize_session=False)
        )

    async def transition(self, task: Task, status: TaskStatus, at: datetime) -> bool:
        values = {"status": status.value}
        if status == TaskStatus.COMPLETED:
            values["completed_at"] = at
        elif status == TaskStatus.SKIPPED:
            values["skipped_at"] = at

        # Only one of two racing requests can match status='pending'
        result = await self.db.execute(
            update(Task)
            .where(Task.id == task.id, Task.status == TaskStatus.PENDING.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        await self.db.refresh(task)
        return True


class SqlInviteRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, invite_id: int) -> Optional[GoalInvite]:
        return await self.db.get(GoalInvite, invite_id)

    async def list_pending_for_user(self, user_id: int) -> List[GoalInvite]:
        result = await self.db.execute(
            select(GoalInvite)
            .where(GoalInvite.to_user_id == user_id)
            .where(GoalInvite.status == InviteStatus.PENDING.value)
            .order_by(GoalInvite.id.desc())
        )
        return list(result.scalars().all())

    async def add(self, invite: GoalInvite) -> GoalInvite:
        self.db.add(invite)
        await self.db.flush()
        return invite

    async def save(self, invite: GoalInvite) -> GoalInvite:
        self.db.add(invite)
        await self.db.flush()
        return invite

    async def resolve(self, invite: GoalInvite, status: InviteStatus, at: datetime) -> bool:
        # Same guard as task transitions: one of two racing resolutions wins
        result = await self.db.execute(
            update(GoalInvite)
            .where(GoalInvite.id == invite.id, GoalInvite.status == InviteStatus.PENDING.value)
            .values(status=status.value, resolved_at=at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        await self.db.refresh(invite)
        return True

    async def detach_goal(self, goal_id: int) -> None:
        await self.db.execute(
            update(GoalInvite)
            .where(GoalInvite.source_goal_id == goal_id)
            .values(source_goal_id=None)
            .execution_options(synchronize_session="fetch")
        )


class SqlUserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_google_id(self, google_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.google_id == google_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def list_with_reminders(self) -> List[User]:
        result = await self.db.execute(
            select(User).where(User.reminder_enabled.is_(True)).order_by(User.id)
        )
        return list(result.scalars().all())

    async def add(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    async def save(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user


class SqlActivityRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, activity: Activity) -> Activity:
        self.db.add(activity)
        await self.db.flush()
        return activity

    async def list_public(self, limit: int = 50) -> List[Activity]:
        result = await self.db.execute(
            select(Activity)
            .where(Activity.is_public.is_(True))
            .order_by(Activity.created_at.desc(), Activity.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


class SqlStore:
    """Unit of work over one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.goals = SqlGoalRepository(db)
        self.tasks = SqlTaskRepository(db)
        self.invites = SqlInviteRepository(db)
        self.users = SqlUserRepository(db)
        self.activities = SqlActivityRepository(db)

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
