# tests/test_scheduler.py

from __future__ import annotations

import pytest

from consistify.errors import (
    ActionItemIndexOutOfBounds,
    ActionItemsIncomplete,
    GoalNotFound,
    NoActiveGoal,
    TaskNotFound,
    TaskNotPending,
)
from consistify.models.task import TaskStatus
from consistify.services.scheduler import ONE_DAY, DailyTaskScheduler, GoalExhausted, TodayTask

from conftest import add_goal, add_user, check_all_items
from fakes import START


async def assert_accounting(store, goal) -> None:
    tasks = await store.tasks.list_for_goal(goal.id)
    terminal = [t for t in tasks if t.status != TaskStatus.PENDING]
    pending = [t for t in tasks if t.status == TaskStatus.PENDING]
    assert goal.completed_days + goal.skipped_days == len(terminal)
    assert len(pending) + len(terminal) == len(tasks)
    assert goal.completed_days == sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    assert goal.skipped_days == sum(1 for t in tasks if t.status == TaskStatus.SKIPPED)


@pytest.mark.asyncio
async def test_today_is_lowest_pending_day(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables", "Loops", "Functions"])
    scheduler = DailyTaskScheduler(store, clock)

    first = await scheduler.get_today_task(goal)
    again = await scheduler.get_today_task(goal)

    assert isinstance(first, TodayTask)
    assert first.task.day_number == 1
    assert first.task.title == "Variables"
    assert again.task.id == first.task.id
    assert first.goal.progress == 0
    assert first.goal.total_tasks == 3


@pytest.mark.asyncio
async def test_today_fills_resources_without_storing_them(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables"])
    result = await DailyTaskScheduler(store, clock).get_today_task(goal)

    assert result.task.resources
    assert result.task.resources[0].creator == "YouTube"
    stored = await store.tasks.get(result.task.id)
    assert stored.resources == []


@pytest.mark.asyncio
async def test_today_for_unknown_or_foreign_goal_is_no_active_goal(store, ada, grace, clock):
    goal = await add_goal(store, ada, ["Variables"])
    scheduler = DailyTaskScheduler(store, clock)

    with pytest.raises(NoActiveGoal):
        await scheduler.get_today_task_for_goal(goal.id, grace)
    with pytest.raises(NoActiveGoal):
        await scheduler.get_today_task_for_goal(999, ada)
    with pytest.raises(NoActiveGoal):
        await scheduler.get_today_task_for_user(grace)


@pytest.mark.asyncio
async def test_complete_advances_goal_and_emits_event(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables", "Loops"])
    scheduler = DailyTaskScheduler(store, clock)
    today = await scheduler.get_today_task(goal)
    task = await store.tasks.get(today.task.id)
    await check_all_items(store, task)

    result = await scheduler.complete_task(task.id, ada)

    assert result.task.status == TaskStatus.COMPLETED
    assert result.task.completed_at == START
    assert goal.completed_days == 1
    assert goal.current_day == 2
    assert goal.skipped_days == 0
    assert result.goal.progress == 50
    assert not goal.is_completed

    [event] = result.events
    assert event.type == "completed"
    assert event.task_title == "Variables"
    assert event.skill_name == "Python"
    assert event.progress_percent == 50
    assert event.message == "Ada completed Day 1: Variables"
    await assert_accounting(store, goal)


@pytest.mark.asyncio
async def test_complete_without_visibility_emits_nothing(store, clock):
    hidden = await add_user(store, "Hidden", visible=False)
    goal = await add_goal(store, hidden, ["Variables", "Loops"])
    task = await store.tasks.first_pending(goal.id)
    await check_all_items(store, task)

    result = await DailyTaskScheduler(store, clock).complete_task(task.id, hidden)

    assert result.events == []


@pytest.mark.asyncio
async def test_complete_rejects_unchecked_items_without_mutation(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables", "Loops"], items_per_task=2)
    task = await store.tasks.first_pending(goal.id)
    task.action_items = [{"text": "a", "completed": True}, {"text": "b", "completed": False}]
    scheduler = DailyTaskScheduler(store, clock)

    with pytest.raises(ActionItemsIncomplete):
        await scheduler.complete_task(task.id, ada)

    assert task.status == TaskStatus.PENDING
    assert task.completed_at is None
    assert (goal.completed_days, goal.current_day, goal.skipped_days) == (0, 1, 0)
    assert store.commits == 0


@pytest.mark.asyncio
async def test_task_without_action_items_can_be_completed(store, ada, clock):
    goal = await add_goal(store, ada, ["Rest day", "Loops"], items_per_task=0)
    task = await store.tasks.first_pending(goal.id)

    result = await DailyTaskScheduler(store, clock).complete_task(task.id, ada)

    assert result.task.status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_double_complete_counts_once(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables", "Loops"])
    task = await store.tasks.first_pending(goal.id)
    await check_all_items(store, task)
    scheduler = DailyTaskScheduler(store, clock)

    await scheduler.complete_task(task.id, ada)
    with pytest.raises(TaskNotPending):
        await scheduler.complete_task(task.id, ada)
    with pytest.raises(TaskNotPending):
        await scheduler.skip_task(task.id, ada)

    assert goal.completed_days == 1
    assert goal.current_day == 2
    await assert_accounting(store, goal)


@pytest.mark.asyncio
async def test_lost_race_rolls_back(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables", "Loops"])
    task = await store.tasks.first_pending(goal.id)
    await check_all_items(store, task)
    scheduler = DailyTaskScheduler(store, clock)

    async def already_taken(task, status, at):
        return False

    store.tasks.transition = already_taken

    with pytest.raises(TaskNotPending):
        await scheduler.complete_task(task.id, ada)
    assert store.rollbacks == 1
    assert goal.completed_days == 0


@pytest.mark.asyncio
async def test_foreign_task_is_not_found(store, ada, grace, clock):
    goal = await add_goal(store, ada, ["Variables"])
    task = await store.tasks.first_pending(goal.id)
    await check_all_items(store, task)
    scheduler = DailyTaskScheduler(store, clock)

    with pytest.raises(TaskNotFound):
        await scheduler.complete_task(task.id, grace)
    with pytest.raises(TaskNotFound):
        await scheduler.skip_task(task.id, grace)
    with pytest.raises(TaskNotFound):
        await scheduler.update_action_item(task.id, 0, True, grace)
    with pytest.raises(TaskNotFound):
        await scheduler.complete_task(12345, ada)


@pytest.mark.asyncio
async def test_completing_last_task_exhausts_goal(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables"])
    task = await store.tasks.first_pending(goal.id)
    await check_all_items(store, task)
    scheduler = DailyTaskScheduler(store, clock)

    result = await scheduler.complete_task(task.id, ada)

    assert goal.is_completed is True
    assert goal.is_active is False
    assert result.goal.progress == 100
    for _ in range(2):
        today = await scheduler.get_today_task(goal)
        assert isinstance(today, GoalExhausted)
        assert today.goal.is_completed
    exhausted = await scheduler.get_today_task_for_goal(goal.id, ada)
    assert isinstance(exhausted, GoalExhausted)


@pytest.mark.asyncio
async def test_today_marks_goal_completed_when_nothing_pending(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables"])
    task = await store.tasks.first_pending(goal.id)
    task.status = TaskStatus.COMPLETED.value

    result = await DailyTaskScheduler(store, clock).get_today_task(goal)

    assert isinstance(result, GoalExhausted)
    assert goal.is_completed and not goal.is_active


@pytest.mark.asyncio
async def test_skip_requeues_same_day_content(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables", "Loops", "Functions"], items_per_task=2)
    original = await store.tasks.first_pending(goal.id)
    original.action_items = [{"text": "read", "completed": True}, {"text": "code", "completed": False}]
    scheduler = DailyTaskScheduler(store, clock)

    result = await scheduler.skip_task(original.id, ada)

    assert original.status == TaskStatus.SKIPPED
    assert original.skipped_at == START
    replacement = result.replacement
    assert replacement.id != original.id
    assert replacement.day_number == 1
    assert replacement.title == "Variables"
    assert replacement.description == original.description
    assert replacement.estimated_minutes == original.estimated_minutes
    assert replacement.status == TaskStatus.PENDING
    assert replacement.action_items == [
        {"text": "read", "completed": False},
        {"text": "code", "completed": False},
    ]
    assert goal.skipped_days == 1
    assert goal.current_day == 1
    assert result.goal.progress == 0

    # The skipped record never comes back
    await scheduler.get_today_task(goal)
    assert (await store.tasks.get(original.id)).status == TaskStatus.SKIPPED
    await assert_accounting(store, goal)


@pytest.mark.asyncio
async def test_skip_of_only_task_schedules_from_now(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables"])
    task = await store.tasks.first_pending(goal.id)
    clock.advance(5)

    result = await DailyTaskScheduler(store, clock).skip_task(task.id, ada)

    assert result.replacement.scheduled_date == clock.now + ONE_DAY
    assert not goal.is_completed


@pytest.mark.asyncio
async def test_skip_then_complete_scenario(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables", "Loops", "Functions"])
    d1, d2, d3 = await store.tasks.list_for_goal(goal.id)
    scheduler = DailyTaskScheduler(store, clock)

    skipped = await scheduler.skip_task(d1.id, ada)

    assert d2.scheduled_date == START + ONE_DAY * 2
    assert d3.scheduled_date == START + ONE_DAY * 3
    assert skipped.replacement.scheduled_date == START + ONE_DAY * 4
    assert goal.skipped_days == 1

    today = await scheduler.get_today_task(goal)
    assert today.task.id == skipped.replacement.id
    assert today.task.day_number == 1

    new_d1 = await store.tasks.get(skipped.replacement.id)
    await scheduler.update_action_item(new_d1.id, 0, True, ada)
    result = await scheduler.complete_task(new_d1.id, ada)

    assert goal.completed_days == 1
    assert goal.current_day == 2
    assert result.goal.total_tasks == 4
    assert result.goal.progress == 25
    await assert_accounting(store, goal)


@pytest.mark.asyncio
async def test_mixed_sequence_keeps_accounting(store, ada, clock):
    goal = await add_goal(store, ada, ["A", "B", "C", "D"])
    scheduler = DailyTaskScheduler(store, clock)

    for action in ["skip", "complete", "skip", "skip", "complete", "complete", "complete", "complete"]:
        today = await scheduler.get_today_task(goal)
        if isinstance(today, GoalExhausted):
            break
        task = await store.tasks.get(today.task.id)
        if action == "skip":
            await scheduler.skip_task(task.id, ada)
        else:
            await check_all_items(store, task)
            await scheduler.complete_task(task.id, ada)
        clock.advance()
        await assert_accounting(store, goal)

    assert goal.is_completed
    assert goal.completed_days == 4
    assert goal.skipped_days == 3
    assert await store.tasks.count(goal.id) == 7


@pytest.mark.asyncio
async def test_update_action_item_toggles_only_that_item(store, ada, clock):
    goal = await add_goal(store, ada, ["Variables"], items_per_task=2)
    task = await store.tasks.first_pending(goal.id)
    scheduler = DailyTaskScheduler(store, clock)

    await scheduler.update_action_item(task.id, 0, True, ada)
    updated = await scheduler.update_action_item(task.id, 1, True, ada)

    assert [item["completed"] for item in updated.action_items] == [True, True]
    # All checked, but completion still needs an explicit call
    assert updated.status == TaskStatus.PENDING
    assert goal.completed_days == 0

    updated = await scheduler.update_action_item(task.id, 0, False, ada)
    assert [item["completed"] for item in updated.action_items] == [False, True]


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [-1, 2, 99])
async def test_update_action_item_out_of_bounds(store, ada, clock, index):
    goal = await add_goal(store, ada, ["Variables"], items_per_task=2)
    task = await store.tasks.first_pending(goal.id)

    with pytest.raises(ActionItemIndexOutOfBounds):
        await DailyTaskScheduler(store, clock).update_action_item(task.id, index, True, ada)


@pytest.mark.asyncio
async def test_history_is_most_recent_first(store, ada, grace, clock):
    goal = await add_goal(store, ada, ["A", "B", "C"])
    scheduler = DailyTaskScheduler(store, clock)
    a, b, _ = await store.tasks.list_for_goal(goal.id)

    await scheduler.skip_task(a.id, ada)
    clock.advance()
    await check_all_items(store, b)
    await scheduler.complete_task(b.id, ada)

    history = await scheduler.task_history(goal.id, ada)
    assert [t.id for t in history] == [b.id, a.id]
    assert len(await scheduler.list_tasks(goal.id, ada)) == 4
    with pytest.raises(GoalNotFound):
        await scheduler.list_tasks(goal.id, grace)
