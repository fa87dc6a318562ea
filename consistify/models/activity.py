from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, func
from consistify.database import Base

class Activity(Base):
    """Append-only feed entry. Never updated after insert."""
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    goal_id = Column(Integer, nullable=True)
    type = Column(String, nullable=False)  # completed
    message = Column(Text, nullable=False)
    task_title = Column(String, nullable=True)
    skill_name = Column(String, nullable=True)
    progress_percent = Column(Integer, nullable=True)
    is_public = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
