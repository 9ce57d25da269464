"""Event and EventAccess (membership) models."""

import enum
import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class AccessLevel(enum.IntEnum):
    """Per-event permission tier. Lower value means more privilege."""

    ADMIN = 0
    CONTRIBUTOR = 1
    VIEWER = 2


class Event(SQLModel, table=True):
    __tablename__ = "events"

    id: str = Field(default_factory=lambda: f"evt_{secrets.token_hex(6)}", primary_key=True)
    title: str = Field(max_length=200)
    description: Optional[str] = None
    date: datetime = Field(index=True)
    creator_id: str = Field(foreign_key="users.id", index=True)
    invitation_token: str = Field(unique=True, index=True, max_length=32)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventAccess(SQLModel, table=True):
    __tablename__ = "event_access"
    __table_args__ = (UniqueConstraint("user_id", "event_id", name="uq_event_access_user_event"),)

    id: Optional[int] = Field(default=None, primary_key=True)  # doubles as join order
    user_id: str = Field(foreign_key="users.id", index=True)
    event_id: str = Field(foreign_key="events.id", index=True)
    access_level: int = Field(default=AccessLevel.CONTRIBUTOR)
    joined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
