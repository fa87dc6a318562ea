import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Index, func
from consistify.database import Base


class TaskStatus(str, enum.Enum):
    PENDING = "pending"      # the only actionable state
    COMPLETED = "completed"
    SKIPPED = "skipped"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    goal_id = Column(Integer, ForeignKey("goals.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    day_number = Column(Integer, nullable=False)  # reused by the replacement of a skipped task
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    estimated_minutes = Column(Integer, nullable=False)
    phase = Column(String, nullable=True)
    skill_progression = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=TaskStatus.PENDING.value)
    scheduled_date = Column(DateTime(timezone=True), nullable=True)  # advisory only
    action_items = Column(JSON, nullable=False, default=list)  # [{"text": str, "completed": bool}]
    resources = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    skipped_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_tasks_goal_status_day", "goal_id", "status", "day_number"),
    )
