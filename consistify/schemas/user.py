from pydantic import BaseModel, EmailStr
from typing import Optional

class VerifiedIdentity(BaseModel):
    google_id: str
    email: EmailStr
    name: str
    picture: Optional[str] = None

class GoogleLogin(BaseModel):
    credential: str

class UserResponse(BaseModel):
    id: int
    email: EmailStr
    name: str
    picture: Optional[str] = None
    show_in_activity_feed: bool
    reminder_enabled: bool
    timezone: str

    model_config = {"from_attributes": True}

class UserSettingsUpdate(BaseModel):
    show_in_activity_feed: Optional[bool] = None
    reminder_enabled: Optional[bool] = None
    timezone: Optional[str] = None

class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    user: UserResponse
