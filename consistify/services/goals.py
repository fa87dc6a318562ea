# consistify/services/goals.py
import logging
from datetime import datetime
from typing import Callable, List, Optional

from consistify.errors import GoalAlreadyCompleted, GoalNotFound, NoActiveGoal
from consistify.models.goal import Goal
from consistify.models.task import Task, TaskStatus
from consistify.models.user import User
from consistify.repositories.base import Store
from consistify.schemas.goal import DayDescriptor, GoalCreate, GoalSummary, PlanRequest
from consistify.services.planner import GoalPlanner, get_planner
from consistify.services.progress import ProgressTracker
from consistify.services.scheduler import ONE_DAY, utcnow

logger = logging.getLogger(__name__)


def new_goal(user_id: int, *, type: str, title: str, description, total_days: int, daily_minutes: int) -> Goal:
    return Goal(
        user_id=user_id,
        type=type,
        title=title,
        description=description,
        total_days=total_days,
        daily_minutes=daily_minutes,
        completed_days=0,
        skipped_days=0,
        current_day=1,
        is_active=True,
        is_completed=False,
    )


def tasks_from_plan(plan: List[DayDescriptor], goal: Goal, start: datetime) -> List[Task]:
    """One pending task per descriptor, scheduled a day apart from start."""
    return [
        Task(
            goal_id=goal.id,
            user_id=goal.user_id,
            day_number=day.day_number,
            title=day.title,
            description=day.description,
            estimated_minutes=day.estimated_minutes,
            phase=day.phase,
            skill_progression=day.skill_progression,
            status=TaskStatus.PENDING.value,
            scheduled_date=start + ONE_DAY * (day.day_number - 1),
            action_items=[{"text": text, "completed": False} for text in day.action_items],
            resources=[r.model_dump() for r in day.resources],
            created_at=start,
        )
        for day in plan
    ]


class GoalService:
    def __init__(self, store: Store, planner: Optional[GoalPlanner] = None, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.planner = planner
        self.clock = clock
        self.progress = ProgressTracker(store.tasks)

    async def create_goal(self, user: User, goal_in: GoalCreate) -> GoalSummary:
        # Planning happens before any write; it never raises
        planner = self.planner or get_planner()
        plan = await planner.generate(PlanRequest(
            type=goal_in.type,
            title=goal_in.title,
            description=goal_in.description,
            total_days=goal_in.total_days,
            daily_minutes=goal_in.daily_minutes,
        ))

        try:
            await self.store.goals.deactivate_all(user.id)
            goal = await self.store.goals.add(new_goal(
                user.id,
                type=goal_in.type,
                title=goal_in.title,
                description=goal_in.description,
                total_days=goal_in.total_days,
                daily_minutes=goal_in.daily_minutes,
            ))
            await self.store.tasks.add_many(tasks_from_plan(plan, goal, self.clock()))
            summary = await self.progress.summarize(goal)
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        logger.info("Goal %s created for user %s with %d days", goal.id, user.id, len(plan))
        return summary

    async def list_goals(self, user: User) -> List[GoalSummary]:
        goals = await self.store.goals.list_for_user(user.id)
        return [await self.progress.summarize(goal) for goal in goals]

    async def get_goal(self, goal_id: int, user: User) -> GoalSummary:
        goal = await self.store.goals.get_for_user(goal_id, user.id)
        if goal is None:
            raise GoalNotFound()
        return await self.progress.summarize(goal)

    async def get_active_goal(self, user: User) -> GoalSummary:
        goal = await self.store.goals.get_active_for_user(user.id)
        if goal is None:
            raise NoActiveGoal()
        return await self.progress.summarize(goal)

    async def activate_goal(self, goal_id: int, user: User) -> GoalSummary:
        goal = await self.store.goals.get_for_user(goal_id, user.id)
        if goal is None:
            raise GoalNotFound()
        if goal.is_completed:
            raise GoalAlreadyCompleted()

        try:
            await self.store.goals.deactivate_all(user.id)
            goal.is_active = True
            await self.store.goals.save(goal)
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise
        return await self.progress.summarize(goal)

    async def delete_goal(self, goal_id: int, user: User) -> None:
        """Delete a goal with its tasks and unlink any partner goal."""
        goal = await self.store.goals.get_for_user(goal_id, user.id)
        if goal is None:
            raise GoalNotFound()

        try:
            for partner_goal in await self.store.goals.list_linked_to(goal.id):
                partner_goal.partner_goal_id = None
                await self.store.goals.save(partner_goal)
            await self.store.invites.detach_goal(goal.id)
            await self.store.tasks.delete_for_goal(goal.id)
            await self.store.goals.delete(goal)
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise
        logger.info("Goal %s deleted by user %s", goal_id, user.id)
