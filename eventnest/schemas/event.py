"""Event, membership and invitation schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

INVITATION_PATTERN = r"^[0-9a-f]{32}$"


class EventCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    date: datetime
    invitation_token: Optional[str] = Field(default=None, pattern=INVITATION_PATTERN)


class EventUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    date: Optional[datetime] = None


class EventResponse(BaseModel):
    id: str
    title: str
    description: Optional[str]
    date: str
    creator_id: str
    invitation_token: str
    access_level: int
    created_at: str


class JoinRequest(BaseModel):
    invitation_token: str = Field(pattern=INVITATION_PATTERN)


class ParticipantResponse(BaseModel):
    user_id: str
    name: str
    email: str
    access_level: int
    joined_at: str


class AccessLevelRequest(BaseModel):
    access_level: int = Field(ge=0, le=2)


class AccessResponse(BaseModel):
    event_id: str
    user_id: str
    access_level: int


class InvitationResponse(BaseModel):
    event_id: str
    invitation_token: str
