"""Photo response schemas."""

from typing import Optional

from pydantic import BaseModel


class PhotoResponse(BaseModel):
    id: str
    event_id: str
    event_title: Optional[str] = None
    user_id: str
    image_url: str
    content_type: str
    file_size: int
    created_at: str


class PhotoListResponse(BaseModel):
    photos: list[PhotoResponse]
    total_count: int


class PhotoCountResponse(BaseModel):
    event_id: str
    count: int
