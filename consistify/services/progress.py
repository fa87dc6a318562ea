# consistify/services/progress.py
import math
from dataclasses import dataclass

from consistify.models.goal import Goal
from consistify.models.task import TaskStatus
from consistify.repositories.base import TaskRepository
from consistify.schemas.goal import GoalSummary


def progress_percent(completed_tasks: int, total_tasks: int) -> int:
    """Completed share of every task ever created, rounded half-up to 0..100."""
    if total_tasks == 0:
        return 0
    return int(math.floor(completed_tasks / total_tasks * 100 + 0.5))


@dataclass
class GoalProgress:
    total_tasks: int
    completed_tasks: int
    skipped_tasks: int
    pending_tasks: int

    @property
    def percent(self) -> int:
        return progress_percent(self.completed_tasks, self.total_tasks)


class ProgressTracker:
    """
    Derives goal progress from the task sequence on every call.

    Nothing here is cached; callers ask again after each mutation.
    """

    def __init__(self, tasks: TaskRepository):
        self.tasks = tasks

    async def compute(self, goal_id: int) -> GoalProgress:
        tasks = await self.tasks.list_for_goal(goal_id)
        completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
        skipped = sum(1 for t in tasks if t.status == TaskStatus.SKIPPED)
        return GoalProgress(
            total_tasks=len(tasks),
            completed_tasks=completed,
            skipped_tasks=skipped,
            pending_tasks=len(tasks) - completed - skipped,
        )

    async def summarize(self, goal: Goal) -> GoalSummary:
        progress = await self.compute(goal.id)
        return build_summary(goal, progress)


def build_summary(goal: Goal, progress: GoalProgress) -> GoalSummary:
    return GoalSummary(
        id=goal.id,
        title=goal.title,
        description=goal.description,
        type=goal.type,
        total_days=goal.total_days,
        daily_minutes=goal.daily_minutes,
        completed_days=goal.completed_days,
        skipped_days=goal.skipped_days,
        current_day=goal.current_day,
        is_active=goal.is_active,
        is_completed=goal.is_completed,
        partner_id=goal.partner_id,
        partner_goal_id=goal.partner_goal_id,
        progress=progress.percent,
        total_tasks=progress.total_tasks,
        completed_tasks=progress.completed_tasks,
    )
