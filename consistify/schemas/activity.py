from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional

class ActivityEvent(BaseModel):
    """Outbound completion event, published after the scheduler commits."""
    user_id: int
    goal_id: int
    type: Literal["completed"] = "completed"
    message: str
    task_title: str
    skill_name: str
    progress_percent: int
    timestamp: datetime

class ActivityResponse(BaseModel):
    id: int
    user_id: int
    goal_id: Optional[int]
    type: str
    message: str
    task_title: Optional[str]
    skill_name: Optional[str]
    progress_percent: Optional[int]
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}
