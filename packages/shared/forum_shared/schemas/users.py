"""User, profile and notification schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from .common import ActivityType, NotificationType, SubjectType
from .threads import ThreadRead

# Mention handles: letters, digits and underscores only
USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=50, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class AuthResponse(BaseModel):
    user_id: int
    name: str
    token: str
    message: str


class UserRead(BaseModel):
    id: int
    name: str
    created_at: datetime


class ActivityRead(BaseModel):
    id: int
    type: ActivityType
    subject_type: SubjectType
    subject_id: int
    created_at: datetime


class ProfileResponse(BaseModel):
    """A user's profile: their threads (newest first) and activity feed."""
    user: UserRead
    threads: List[ThreadRead] = Field(default_factory=list)
    activity: List[ActivityRead] = Field(default_factory=list)


class NotificationRead(BaseModel):
    id: int
    type: NotificationType
    reply_id: int
    thread_id: int
    data: dict = Field(default_factory=dict)
    created_at: datetime
    read_at: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    data: List[NotificationRead]
