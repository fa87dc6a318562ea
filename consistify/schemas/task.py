from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional

class ActionItem(BaseModel):
    text: str
    completed: bool = False

class Resource(BaseModel):
    type: str  # video, tutorial, docs, article
    title: str
    url: str
    creator: Optional[str] = None

class ActionItemUpdate(BaseModel):
    completed: bool

class TaskResponse(BaseModel):
    id: int
    goal_id: int
    user_id: int
    day_number: int
    title: str
    description: Optional[str]
    estimated_minutes: int
    phase: Optional[str] = None
    skill_progression: Optional[str] = None
    status: str
    scheduled_date: Optional[datetime]
    action_items: List[ActionItem]
    resources: List[Resource] = Field(default_factory=list)
    completed_at: Optional[datetime]
    skipped_at: Optional[datetime]

    model_config = {"from_attributes": True}

    @field_validator("action_items", "resources", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return value or []

class TaskActionResponse(BaseModel):
    task: Optional[TaskResponse] = None
    message: str
