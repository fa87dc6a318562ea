# consistify/services/scheduler.py
"""
Daily task scheduler.

Today's task is the pending task with the lowest day_number. Completing it
advances the goal; skipping it re-queues a fresh copy of the same day at the
tail of the calendar without renumbering anything.

complete/skip run as one store transaction. The conditional status
transition is the first write, so a second request for the same task
matches no row and fails with TaskNotPending before touching counters.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Union

from consistify.errors import (
    GoalNotFound,
    ActionItemIndexOutOfBounds,
    ActionItemsIncomplete,
    NoActiveGoal,
    TaskNotFound,
    TaskNotPending,
)
from consistify.models.goal import Goal
from consistify.models.task import Task, TaskStatus
from consistify.models.user import User
from consistify.repositories.base import Store
from consistify.schemas.activity import ActivityEvent
from consistify.schemas.goal import GoalSummary
from consistify.schemas.task import TaskResponse
from consistify.services.progress import ProgressTracker
from consistify.services.resources import resources_for_task

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)

COMPLETE_MESSAGE = "Great work showing up today! Rest well."
SKIP_MESSAGE = "No worries! Life happens. Your task will be waiting when you're ready. Take care."
EXHAUSTED_MESSAGE = "You've completed all tasks for this goal! Amazing work!"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TodayTask:
    task: TaskResponse
    goal: GoalSummary


@dataclass
class GoalExhausted:
    goal: GoalSummary
    message: str = EXHAUSTED_MESSAGE


@dataclass
class CompletionResult:
    task: Task
    goal: GoalSummary
    message: str = COMPLETE_MESSAGE
    events: List[ActivityEvent] = field(default_factory=list)


@dataclass
class SkipResult:
    skipped: Task
    replacement: Task
    goal: GoalSummary
    message: str = SKIP_MESSAGE


def reset_action_items(items) -> list:
    return [{"text": item["text"], "completed": False} for item in (items or [])]


class DailyTaskScheduler:
    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock
        self.progress = ProgressTracker(store.tasks)

    async def get_today_task(self, goal: Goal) -> Union[TodayTask, GoalExhausted]:
        """
        Lowest pending day of the goal, with resources filled in on demand.

        A goal with nothing pending is marked completed (once) and reported as
        exhausted on every call.
        """
        task = await self.store.tasks.first_pending(goal.id)
        if task is None:
            if not goal.is_completed or goal.is_active:
                goal.is_completed = True
                goal.is_active = False
                await self.store.goals.save(goal)
                await self.store.commit()
                logger.info("Goal %s exhausted, marked completed", goal.id)
            return GoalExhausted(goal=await self.progress.summarize(goal))

        response = TaskResponse.model_validate(task)
        if not response.resources:
            # Response-only enrichment; the stored record is left untouched
            response.resources = resources_for_task(task.title, goal.title)
        return TodayTask(task=response, goal=await self.progress.summarize(goal))

    async def get_today_task_for_goal(self, goal_id: int, user: User) -> Union[TodayTask, GoalExhausted]:
        goal = await self.store.goals.get_for_user(goal_id, user.id)
        if goal is None:
            raise NoActiveGoal()
        if not goal.is_completed and not goal.is_active:
            raise NoActiveGoal()
        return await self.get_today_task(goal)

    async def get_today_task_for_user(self, user: User) -> Union[TodayTask, GoalExhausted]:
        goal = await self.store.goals.get_active_for_user(user.id)
        if goal is None:
            raise NoActiveGoal()
        return await self.get_today_task(goal)

    async def _load_pending(self, task_id: int, user: User) -> tuple[Task, Goal]:
        task = await self.store.tasks.get_for_user(task_id, user.id)
        if task is None:
            raise TaskNotFound()
        if task.status != TaskStatus.PENDING:
            raise TaskNotPending()
        goal = await self.store.goals.get(task.goal_id)
        if goal is None:
            raise TaskNotFound()
        return task, goal

    async def complete_task(self, task_id: int, user: User) -> CompletionResult:
        task, goal = await self._load_pending(task_id, user)
        if not all(item.get("completed") for item in (task.action_items or [])):
            raise ActionItemsIncomplete()

        now = self.clock()
        try:
            if not await self.store.tasks.transition(task, TaskStatus.COMPLETED, now):
                raise TaskNotPending()
            goal = await self.store.goals.increment_counters(goal, completed_days=1, current_day=1)

            if await self.store.tasks.count(goal.id, TaskStatus.PENDING) == 0:
                goal.is_completed = True
                goal.is_active = False
                await self.store.goals.save(goal)

            summary = await self.progress.summarize(goal)
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        logger.info("Task %s completed (goal=%s day=%s progress=%s%%)",
                    task.id, goal.id, task.day_number, summary.progress)

        events = []
        if user.show_in_activity_feed:
            events.append(ActivityEvent(
                user_id=user.id,
                goal_id=goal.id,
                message=f"{user.name} completed Day {task.day_number}: {task.title}",
                task_title=task.title,
                skill_name=goal.title,
                progress_percent=summary.progress,
                timestamp=now,
            ))
        return CompletionResult(task=task, goal=summary, events=events)

    async def skip_task(self, task_id: int, user: User) -> SkipResult:
        task, goal = await self._load_pending(task_id, user)

        now = self.clock()
        try:
            if not await self.store.tasks.transition(task, TaskStatus.SKIPPED, now):
                raise TaskNotPending()
            # Skipping does not consume a day: current_day stays put
            goal = await self.store.goals.increment_counters(goal, skipped_days=1)

            pending = await self.store.tasks.list_for_goal(goal.id, TaskStatus.PENDING)
            for queued in pending:
                if queued.scheduled_date is not None:
                    queued.scheduled_date = queued.scheduled_date + ONE_DAY
                    await self.store.tasks.save(queued)

            last = pending[-1] if pending else None
            if last is not None and last.scheduled_date is not None:
                next_date = last.scheduled_date + ONE_DAY
            else:
                next_date = now + ONE_DAY

            replacement = await self.store.tasks.add(Task(
                goal_id=task.goal_id,
                user_id=task.user_id,
                day_number=task.day_number,
                title=task.title,
                description=task.description,
                estimated_minutes=task.estimated_minutes,
                phase=task.phase,
                skill_progression=task.skill_progression,
                status=TaskStatus.PENDING.value,
                scheduled_date=next_date,
                action_items=reset_action_items(task.action_items),
                resources=list(task.resources or []),
                created_at=now,
            ))
            summary = await self.progress.summarize(goal)
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        logger.info("Task %s skipped, day %s re-queued as task %s for %s",
                    task.id, task.day_number, replacement.id, next_date.date())
        return SkipResult(skipped=task, replacement=replacement, goal=summary)

    async def update_action_item(self, task_id: int, index: int, completed: bool, user: User) -> Task:
        """Toggle one checklist item. Never completes the task by itself."""
        task = await self.store.tasks.get_for_user(task_id, user.id)
        if task is None:
            raise TaskNotFound()
        items = task.action_items or []
        if index < 0 or index >= len(items):
            raise ActionItemIndexOutOfBounds()

        # New list so the JSON column registers the change
        updated = [dict(item) for item in items]
        updated[index]["completed"] = completed
        task.action_items = updated
        await self.store.tasks.save(task)
        await self.store.commit()
        return task

    async def list_tasks(self, goal_id: int, user: User) -> List[Task]:
        goal = await self.store.goals.get_for_user(goal_id, user.id)
        if goal is None:
            raise GoalNotFound()
        return await self.store.tasks.list_for_goal(goal.id)

    async def task_history(self, goal_id: int, user: User) -> List[Task]:
        tasks = await self.list_tasks(goal_id, user)
        done = [t for t in tasks if t.status != TaskStatus.PENDING]
        return sorted(done, key=lambda t: (_acted_at(t), t.id), reverse=True)


def _acted_at(task: Task) -> float:
    at: Optional[datetime] = task.completed_at or task.skipped_at
    if at is None:
        return 0.0
    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    return at.timestamp()

