"""Photo upload, retrieval, and deletion with event-level authorization."""

import logging

from sqlmodel import Session, col, func, select

from eventnest.config import settings
from eventnest.errors import Forbidden, NotFound, ValidationFailed
from eventnest.models.event import AccessLevel, Event, EventAccess
from eventnest.models.photo import Photo
from eventnest.services.membership_service import level_of
from eventnest.utils.storage import BlobStore

logger = logging.getLogger(__name__)

# Supported MIME types
IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/heic": ".heic",
    "image/heif": ".heif",
    "image/gif": ".gif",
}


# --- Authorization ---

def authorize_upload(event_id: str, user_id: str, session: Session) -> AccessLevel:
    """Admins and contributors may upload; viewers may not."""
    level = level_of(user_id, event_id, session)
    if level is None:
        raise NotFound("Event not found")
    if level > AccessLevel.CONTRIBUTOR:
        raise Forbidden("Only contributors and admins can upload photos")
    return level


def authorize_view(photo: Photo, user_id: str, session: Session) -> AccessLevel:
    level = level_of(user_id, photo.event_id, session)
    if level is None:
        raise NotFound("Photo not found")
    return level


def authorize_delete(photo: Photo, user_id: str, session: Session) -> AccessLevel:
    """The uploader or any event admin may delete."""
    level = authorize_view(photo, user_id, session)
    if photo.user_id != user_id and level != AccessLevel.ADMIN:
        raise Forbidden("Only the photo uploader or an event admin can delete the photo")
    return level


# --- Operations ---

def upload_photo(
    file_data: bytes,
    filename: str,
    content_type: str,
    event_id: str,
    user_id: str,
    session: Session,
    blob_store: BlobStore,
) -> Photo:
    """Store the bytes in the blob store and record the photo against the event."""
    authorize_upload(event_id, user_id, session)

    if not file_data:
        raise ValidationFailed("Empty file")
    if len(file_data) > settings.max_upload_bytes:
        raise ValidationFailed(f"File too large (max {settings.max_upload_bytes} bytes)")
    if content_type not in IMAGE_TYPES:
        raise ValidationFailed(f"Unsupported file type: {content_type}")

    image_url = blob_store.put(file_data, content_type, filename)

    photo = Photo(
        event_id=event_id,
        user_id=user_id,
        image_url=image_url,
        content_type=content_type,
        file_size=len(file_data),
    )
    session.add(photo)
    session.commit()
    session.refresh(photo)
    logger.info("User %s uploaded photo %s to event %s", user_id, photo.id, event_id)
    return photo


def get_photo(photo_id: str, user_id: str, session: Session) -> Photo:
    photo = session.get(Photo, photo_id)
    if not photo:
        raise NotFound("Photo not found")
    authorize_view(photo, user_id, session)
    return photo


def list_event_photos(event_id: str, user_id: str, session: Session) -> list[Photo]:
    """Photos of one event, newest first. Members only."""
    if level_of(user_id, event_id, session) is None:
        raise NotFound("Event not found")
    return list(session.exec(
        select(Photo)
        .where(Photo.event_id == event_id)
        .order_by(col(Photo.created_at).desc())
    ).all())


def count_event_photos(event_id: str, user_id: str, session: Session) -> int:
    if level_of(user_id, event_id, session) is None:
        raise NotFound("Event not found")
    return session.exec(
        select(func.count()).select_from(Photo).where(Photo.event_id == event_id)
    ).one()


def list_user_photos(user_id: str, session: Session) -> list[Photo]:
    """Photos the user uploaded, newest first."""
    return list(session.exec(
        select(Photo)
        .where(Photo.user_id == user_id)
        .order_by(col(Photo.created_at).desc())
    ).all())


def list_photos_from_user_events(user_id: str, session: Session) -> list[tuple[Photo, Event]]:
    """Photos from every event the user belongs to, newest first."""
    return list(session.exec(
        select(Photo, Event)
        .join(Event, Event.id == Photo.event_id)
        .join(EventAccess, EventAccess.event_id == Photo.event_id)
        .where(EventAccess.user_id == user_id)
        .order_by(col(Photo.created_at).desc())
    ).all())


def delete_photo(photo_id: str, user_id: str, session: Session, blob_store: BlobStore) -> None:
    """Delete the blob, then the row.

    A blob deletion failure is raised to the caller and the row is kept.
    """
    photo = session.get(Photo, photo_id)
    if not photo:
        raise NotFound("Photo not found")
    authorize_delete(photo, user_id, session)

    blob_store.delete(photo.image_url)

    session.delete(photo)
    session.commit()
    logger.info("User %s deleted photo %s", user_id, photo_id)
