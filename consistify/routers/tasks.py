# consistify/routers/tasks.py
from fastapi import APIRouter, BackgroundTasks, Depends
from typing import List

from consistify.core.auth import get_current_user
from consistify.core.deps import get_activity_publisher, get_store
from consistify.schemas.task import ActionItemUpdate, TaskActionResponse, TaskResponse
from consistify.schemas.goal import TodayTaskResponse
from consistify.services.activity import dispatch_activity_events
from consistify.services.scheduler import DailyTaskScheduler, GoalExhausted

router = APIRouter(prefix="/tasks", tags=["tasks"])


def today_response(result) -> TodayTaskResponse:
    if isinstance(result, GoalExhausted):
        return TodayTaskResponse(completed=True, goal=result.goal, message=result.message)
    return TodayTaskResponse(task=result.task, goal=result.goal)


@router.get("/today", response_model=TodayTaskResponse)
async def get_today_task(
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    """Today's task for the caller's active goal."""
    result = await DailyTaskScheduler(store).get_today_task_for_user(current_user)
    return today_response(result)


@router.get("/all/{goal_id}", response_model=List[TaskResponse])
async def get_all_tasks(
    goal_id: int,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    """Every task record of a goal for the roadmap, skipped ones included."""
    return await DailyTaskScheduler(store).list_tasks(goal_id, current_user)


@router.get("/history/{goal_id}", response_model=List[TaskResponse])
async def get_task_history(
    goal_id: int,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    return await DailyTaskScheduler(store).task_history(goal_id, current_user)


@router.patch("/{task_id}/complete", response_model=TaskActionResponse)
async def complete_task(
    task_id: int,
    background_tasks: BackgroundTasks,
    store = Depends(get_store),
    publisher = Depends(get_activity_publisher),
    current_user = Depends(get_current_user)
):
    result = await DailyTaskScheduler(store).complete_task(task_id, current_user)
    # Runs after the response; failures are logged only
    if result.events:
        background_tasks.add_task(dispatch_activity_events, publisher, result.events)
    return TaskActionResponse(task=TaskResponse.model_validate(result.task), message=result.message)


@router.patch("/{task_id}/skip", response_model=TaskActionResponse)
async def skip_task(
    task_id: int,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    result = await DailyTaskScheduler(store).skip_task(task_id, current_user)
    return TaskActionResponse(message=result.message)


@router.patch("/{task_id}/action-item/{index}", response_model=TaskResponse)
async def update_action_item(
    task_id: int,
    index: int,
    update_in: ActionItemUpdate,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    return await DailyTaskScheduler(store).update_action_item(task_id, index, update_in.completed, current_user)
