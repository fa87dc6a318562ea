from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal, Optional

from consistify.schemas.task import Resource, TaskResponse

GoalTypeName = Literal["learning", "project", "health", "exam", "habit"]

class GoalCreate(BaseModel):
    type: GoalTypeName
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    total_days: int = Field(..., ge=1, le=365)
    daily_minutes: int = Field(..., ge=1, le=600)

class TimelineCheck(BaseModel):
    type: GoalTypeName
    total_days: int = Field(..., ge=1)

class TimelineAdvice(BaseModel):
    is_rushed: bool
    suggested_days: int
    message: str

class GoalSummary(BaseModel):
    id: int
    title: str
    description: Optional[str]
    type: str
    total_days: int
    daily_minutes: int
    completed_days: int
    skipped_days: int
    current_day: int
    is_active: bool
    is_completed: bool
    partner_id: Optional[int]
    partner_goal_id: Optional[int]
    progress: int  # derived, 0..100
    total_tasks: int
    completed_tasks: int

class TodayTaskResponse(BaseModel):
    """Either today's task with its goal summary, or completed=True."""
    completed: bool = False
    task: Optional[TaskResponse] = None
    goal: GoalSummary
    message: Optional[str] = None

class DayDescriptor(BaseModel):
    day_number: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    estimated_minutes: int = Field(..., ge=1)
    phase: str
    action_items: List[str] = Field(default_factory=list)
    resources: List[Resource] = Field(default_factory=list)
    skill_progression: Optional[str] = None

class PlanRequest(BaseModel):
    type: GoalTypeName
    title: str
    description: Optional[str] = None
    total_days: int = Field(..., ge=1)
    daily_minutes: int = Field(..., ge=1)

class InviteCreate(BaseModel):
    to_user_id: int

class InviteResponse(BaseModel):
    id: int
    from_user_id: int
    from_user_name: Optional[str] = None
    to_user_id: int
    goal_type: str
    title: str
    description: Optional[str]
    total_days: int
    daily_minutes: int
    status: str
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}

class PartnerIdentity(BaseModel):
    id: int
    name: str
    picture: Optional[str] = None

class PartnerProgressResponse(BaseModel):
    partner: PartnerIdentity
    partner_goal: GoalSummary
    partner_tasks: List[TaskResponse]
