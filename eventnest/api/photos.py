"""Photo API endpoints."""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlmodel import Session

from eventnest.api.deps import get_current_user_id
from eventnest.config import settings
from eventnest.database import get_session
from eventnest.models.photo import Photo
from eventnest.schemas.photo import PhotoCountResponse, PhotoListResponse, PhotoResponse
from eventnest.services import photo_service
from eventnest.utils.storage import BlobStore, get_blob_store

router = APIRouter(prefix="/photos", tags=["photos"])


def _photo_to_response(p: Photo, event_title: str | None = None) -> PhotoResponse:
    return PhotoResponse(
        id=p.id,
        event_id=p.event_id,
        event_title=event_title,
        user_id=p.user_id,
        image_url=p.image_url,
        content_type=p.content_type,
        file_size=p.file_size,
        created_at=p.created_at.isoformat() if p.created_at else "",
    )


def _photo_list(photos: list[PhotoResponse]) -> PhotoListResponse:
    return PhotoListResponse(photos=photos, total_count=len(photos))


@router.post("", response_model=PhotoResponse, status_code=status.HTTP_201_CREATED)
def upload(
    file: UploadFile = File(...),
    event_id: str = Form(...),
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Upload a photo to an event. Admins and contributors only."""
    photo = photo_service.upload_photo(
        file_data=file.file.read(settings.max_upload_bytes + 1),
        filename=file.filename or "photo",
        content_type=file.content_type or "application/octet-stream",
        event_id=event_id,
        user_id=user_id,
        session=session,
        blob_store=blob_store,
    )
    return _photo_to_response(photo)


@router.get("/mine", response_model=PhotoListResponse)
def list_my_photos(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Photos uploaded by the current user."""
    photos = photo_service.list_user_photos(user_id, session)
    return _photo_list([_photo_to_response(p) for p in photos])


@router.get("/my-events", response_model=PhotoListResponse)
def list_my_events_photos(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Photos from every event the current user belongs to."""
    rows = photo_service.list_photos_from_user_events(user_id, session)
    return _photo_list([_photo_to_response(p, event.title) for p, event in rows])


@router.get("/event/{event_id}", response_model=PhotoListResponse)
def list_event_photos(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    photos = photo_service.list_event_photos(event_id, user_id, session)
    return _photo_list([_photo_to_response(p) for p in photos])


@router.get("/event/{event_id}/count", response_model=PhotoCountResponse)
def count_event_photos(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    count = photo_service.count_event_photos(event_id, user_id, session)
    return PhotoCountResponse(event_id=event_id, count=count)


@router.get("/{photo_id}", response_model=PhotoResponse)
def get_photo(
    photo_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    return _photo_to_response(photo_service.get_photo(photo_id, user_id, session))


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_photo(
    photo_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Delete a photo. The uploader or an event admin may delete."""
    photo_service.delete_photo(photo_id, user_id, session, blob_store)
