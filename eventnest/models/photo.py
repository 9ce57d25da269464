"""Photo model."""

import secrets
from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class Photo(SQLModel, table=True):
    __tablename__ = "photos"

    id: str = Field(default_factory=lambda: f"pho_{secrets.token_hex(6)}", primary_key=True)
    event_id: str = Field(foreign_key="events.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)  # uploader
    image_url: str = Field(max_length=500)
    content_type: str
    file_size: int
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
