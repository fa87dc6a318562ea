import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, JSON, func
from consistify.database import Base


class GoalType(str, enum.Enum):
    LEARNING = "learning"
    PROJECT = "project"
    HEALTH = "health"
    EXAM = "exam"
    HABIT = "habit"


class InviteStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)  # learning, project, health, exam, habit
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    total_days = Column(Integer, nullable=False)  # fixed at creation
    daily_minutes = Column(Integer, nullable=False)

    # Counters. Only the scheduler's complete/skip paths write these.
    completed_days = Column(Integer, nullable=False, default=0)
    skipped_days = Column(Integer, nullable=False, default=0)
    current_day = Column(Integer, nullable=False, default=1)

    is_active = Column(Boolean, nullable=False, default=True)
    is_completed = Column(Boolean, nullable=False, default=False)

    # Shared goal link, symmetric between the two partners' goals
    partner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    partner_goal_id = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class GoalInvite(Base):
    __tablename__ = "goal_invites"

    id = Column(Integer, primary_key=True, index=True)
    from_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    to_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    source_goal_id = Column(Integer, nullable=True)  # inviter's goal, cleared if it is deleted

    # Goal draft. Becomes a real Goal only on acceptance.
    goal_type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    total_days = Column(Integer, nullable=False)
    daily_minutes = Column(Integer, nullable=False)
    plan = Column(JSON, nullable=False, default=list)  # day descriptors, ordered by day_number

    status = Column(String, nullable=False, default=InviteStatus.PENDING.value)
    accepted_goal_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    resolved_at = Column(DateTime(timezone=True), nullable=True)
