# consistify/services/sharing.py
"""
Shared goals.

Partners run mirrored copies of the same day-topic list: each has an own
Goal and own Task records, linked through partner_id/partner_goal_id.
Nothing here advances a partner's tasks; pacing stays independent.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, List, Tuple

from consistify.errors import (
    GoalAlreadyShared,
    GoalNotFound,
    InvalidInvite,
    InviteAlreadyResolved,
    InviteNotFound,
    NoPartner,
    UserNotFound,
)
from consistify.models.goal import Goal, GoalInvite, InviteStatus
from consistify.models.task import Task
from consistify.models.user import User
from consistify.repositories.base import Store
from consistify.schemas.goal import (
    DayDescriptor,
    GoalSummary,
    InviteResponse,
    PartnerIdentity,
    PartnerProgressResponse,
)
from consistify.schemas.task import TaskResponse
from consistify.services.goals import new_goal, tasks_from_plan
from consistify.services.progress import ProgressTracker
from consistify.services.scheduler import utcnow

logger = logging.getLogger(__name__)


def plan_snapshot(tasks: List[Task]) -> List[dict]:
    """
    Day-topic list of a goal: the first record created for each day_number.

    Skip replacements repeat a day_number, so later copies are ignored.
    """
    first_by_day: Dict[int, Task] = {}
    for task in sorted(tasks, key=lambda t: t.id):
        first_by_day.setdefault(task.day_number, task)

    return [
        DayDescriptor(
            day_number=task.day_number,
            title=task.title,
            description=task.description,
            estimated_minutes=task.estimated_minutes,
            phase=task.phase or "Phase 1: Foundation",
            action_items=[item["text"] for item in (task.action_items or [])],
            resources=task.resources or [],
            skill_progression=task.skill_progression,
        ).model_dump()
        for _, task in sorted(first_by_day.items())
    ]


class SharedGoalCoordinator:
    def __init__(self, store: Store, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock
        self.progress = ProgressTracker(store.tasks)

    async def create_invite(self, from_user: User, to_user_id: int, goal_id: int) -> GoalInvite:
        """Store the goal draft on the invitee's pending list. No Goal yet."""
        if to_user_id == from_user.id:
            raise InvalidInvite("You cannot invite yourself")
        goal = await self.store.goals.get_for_user(goal_id, from_user.id)
        if goal is None:
            raise GoalNotFound()
        if goal.partner_goal_id is not None:
            raise GoalAlreadyShared()
        if await self.store.users.get(to_user_id) is None:
            raise UserNotFound()

        plan = plan_snapshot(await self.store.tasks.list_for_goal(goal.id))
        invite = GoalInvite(
            from_user_id=from_user.id,
            to_user_id=to_user_id,
            source_goal_id=goal.id,
            goal_type=goal.type,
            title=goal.title,
            description=goal.description,
            total_days=goal.total_days,
            daily_minutes=goal.daily_minutes,
            plan=plan,
            status=InviteStatus.PENDING.value,
            created_at=self.clock(),
        )
        try:
            invite = await self.store.invites.add(invite)
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise
        logger.info("Invite %s: user %s -> user %s for goal %s", invite.id, from_user.id, to_user_id, goal.id)
        return invite

    async def list_invites(self, user: User) -> List[InviteResponse]:
        invites = await self.store.invites.list_pending_for_user(user.id)
        result = []
        for invite in invites:
            sender = await self.store.users.get(invite.from_user_id)
            response = InviteResponse.model_validate(invite)
            response.from_user_name = sender.name if sender else None
            result.append(response)
        return result

    async def _load_for_invitee(self, invite_id: int, user: User) -> GoalInvite:
        invite = await self.store.invites.get(invite_id)
        if invite is None or invite.to_user_id != user.id:
            raise InviteNotFound()
        return invite

    async def accept_invite(self, invite_id: int, user: User) -> GoalSummary:
        invite = await self._load_for_invitee(invite_id, user)
        if invite.status != InviteStatus.PENDING:
            raise InviteAlreadyResolved()

        source = None
        if invite.source_goal_id is not None:
            source = await self.store.goals.get(invite.source_goal_id)
        if source is not None and source.partner_goal_id is not None:
            # Another invite for the same goal was accepted first
            raise GoalAlreadyShared()

        now = self.clock()
        plan = [DayDescriptor.model_validate(day) for day in (invite.plan or [])]
        try:
            if not await self.store.invites.resolve(invite, InviteStatus.ACCEPTED, now):
                raise InviteAlreadyResolved()

            await self.store.goals.deactivate_all(user.id)
            goal = new_goal(
                user.id,
                type=invite.goal_type,
                title=invite.title,
                description=invite.description,
                total_days=invite.total_days,
                daily_minutes=invite.daily_minutes,
            )
            goal.partner_id = invite.from_user_id
            goal.partner_goal_id = source.id if source is not None else None
            goal = await self.store.goals.add(goal)
            await self.store.tasks.add_many(tasks_from_plan(plan, goal, now))

            if source is not None:
                source.partner_id = user.id
                source.partner_goal_id = goal.id
                await self.store.goals.save(source)

            invite.accepted_goal_id = goal.id
            await self.store.invites.save(invite)

            summary = await self.progress.summarize(goal)
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise

        logger.info("Invite %s accepted: goal %s mirrors goal %s", invite.id, goal.id, invite.source_goal_id)
        return summary

    async def decline_invite(self, invite_id: int, user: User) -> None:
        invite = await self._load_for_invitee(invite_id, user)
        if invite.status != InviteStatus.PENDING:
            # Already off the pending list
            raise InviteNotFound()

        try:
            if not await self.store.invites.resolve(invite, InviteStatus.DECLINED, self.clock()):
                raise InviteNotFound()
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise
        logger.info("Invite %s declined", invite.id)

    async def _partner_goal(self, goal_id: int, user: User) -> Tuple[User, Goal]:
        goal = await self.store.goals.get_for_user(goal_id, user.id)
        if goal is None:
            raise GoalNotFound()
        if goal.partner_goal_id is None or goal.partner_id is None:
            raise NoPartner()
        partner_goal = await self.store.goals.get(goal.partner_goal_id)
        partner = await self.store.users.get(goal.partner_id)
        if partner_goal is None or partner is None or partner_goal.user_id != partner.id:
            raise NoPartner()
        return partner, partner_goal

    async def get_partner_progress(self, goal_id: int, user: User) -> PartnerProgressResponse:
        """Read-only view of the partner's sequence. Safe to poll."""
        partner, partner_goal = await self._partner_goal(goal_id, user)
        tasks = await self.store.tasks.list_for_goal(partner_goal.id)
        return PartnerProgressResponse(
            partner=PartnerIdentity(id=partner.id, name=partner.name, picture=partner.picture),
            partner_goal=await self.progress.summarize(partner_goal),
            partner_tasks=[TaskResponse.model_validate(t) for t in tasks],
        )
