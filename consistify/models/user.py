from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from consistify.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    google_id = Column(String, unique=True, nullable=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    picture = Column(String, nullable=True)
    show_in_activity_feed = Column(Boolean, default=True, nullable=False)  # visibility for completion events
    reminder_enabled = Column(Boolean, default=True, nullable=False)
    timezone = Column(String, default="UTC", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_active_at = Column(DateTime(timezone=True), nullable=True)
