# consistify/routers/goals.py
from fastapi import APIRouter, Depends
from typing import List

from consistify.core.auth import get_current_user
from consistify.core.deps import get_store
from consistify.routers.tasks import today_response
from consistify.schemas.goal import (
    GoalCreate, GoalSummary, InviteCreate, InviteResponse,
    PartnerProgressResponse, TimelineAdvice, TimelineCheck, TodayTaskResponse,
)
from consistify.services.goals import GoalService
from consistify.services.planner import GoalPlanner, check_timeline, get_planner
from consistify.services.scheduler import DailyTaskScheduler
from consistify.services.sharing import SharedGoalCoordinator

router = APIRouter(prefix="/goals", tags=["goals"])


@router.post("", response_model=GoalSummary)
async def create_goal(
    goal_in: GoalCreate,
    store = Depends(get_store),
    planner: GoalPlanner = Depends(get_planner),
    current_user = Depends(get_current_user)
):
    return await GoalService(store, planner).create_goal(current_user, goal_in)


@router.get("", response_model=List[GoalSummary])
async def list_goals(
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    return await GoalService(store).list_goals(current_user)


@router.post("/timeline-check", response_model=TimelineAdvice)
async def timeline_check(
    check_in: TimelineCheck,
    current_user = Depends(get_current_user)
):
    return check_timeline(check_in.type, check_in.total_days)


@router.get("/active", response_model=GoalSummary)
async def get_active_goal(
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    return await GoalService(store).get_active_goal(current_user)


@router.get("/invites", response_model=List[InviteResponse])
async def list_invites(
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    return await SharedGoalCoordinator(store).list_invites(current_user)


@router.post("/accept-invite/{invite_id}", response_model=GoalSummary)
async def accept_invite(
    invite_id: int,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    return await SharedGoalCoordinator(store).accept_invite(invite_id, current_user)


@router.delete("/decline-invite/{invite_id}")
async def decline_invite(
    invite_id: int,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    await SharedGoalCoordinator(store).decline_invite(invite_id, current_user)
    return {"message": "Invite declined"}


@router.get("/{goal_id}", response_model=GoalSummary)
async def get_goal(
    goal_id: int,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    return await GoalService(store).get_goal(goal_id, current_user)


@router.get("/{goal_id}/today", response_model=TodayTaskResponse)
async def get_today_task(
    goal_id: int,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    result = await DailyTaskScheduler(store).get_today_task_for_goal(goal_id, current_user)
    return today_response(result)


@router.patch("/{goal_id}/activate", response_model=GoalSummary)
async def activate_goal(
    goal_id: int,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    return await GoalService(store).activate_goal(goal_id, current_user)


@router.delete("/{goal_id}")
async def delete_goal(
    goal_id: int,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    await GoalService(store).delete_goal(goal_id, current_user)
    return {"message": "Goal deleted"}


@router.post("/{goal_id}/invite", response_model=InviteResponse)
async def invite_partner(
    goal_id: int,
    invite_in: InviteCreate,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    invite = await SharedGoalCoordinator(store).create_invite(current_user, invite_in.to_user_id, goal_id)
    response = InviteResponse.model_validate(invite)
    response.from_user_name = current_user.name
    return response


@router.get("/{goal_id}/partner-progress", response_model=PartnerProgressResponse)
async def get_partner_progress(
    goal_id: int,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    return await SharedGoalCoordinator(store).get_partner_progress(goal_id, current_user)
