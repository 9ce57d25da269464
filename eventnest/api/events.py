"""Event, membership & invitation API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from eventnest.api.deps import get_current_user_id
from eventnest.database import get_session
from eventnest.models.event import AccessLevel, Event, EventAccess
from eventnest.schemas.event import (
    AccessLevelRequest,
    AccessResponse,
    EventCreateRequest,
    EventResponse,
    EventUpdateRequest,
    InvitationResponse,
    JoinRequest,
    ParticipantResponse,
)
from eventnest.services import event_service, membership_service
from eventnest.utils.storage import BlobStore, get_blob_store

router = APIRouter(prefix="/events", tags=["events"])


def _event_to_response(event: Event, level: int) -> EventResponse:
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        date=event_service.as_utc(event.date).isoformat(),
        creator_id=event.creator_id,
        invitation_token=event.invitation_token,
        access_level=int(level),
        created_at=event.created_at.isoformat() if event.created_at else "",
    )


def _access_to_response(access: EventAccess) -> AccessResponse:
    return AccessResponse(
        event_id=access.event_id,
        user_id=access.user_id,
        access_level=access.access_level,
    )


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    request: EventCreateRequest,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Create an event. The creator becomes its admin."""
    event = event_service.create_event(request.model_dump(), user_id, session)
    return _event_to_response(event, AccessLevel.ADMIN)


@router.get("", response_model=list[EventResponse])
def list_events(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """List events the current user belongs to."""
    return [
        _event_to_response(event, level)
        for event, level in event_service.list_user_events(user_id, session)
    ]


@router.post("/join", response_model=EventResponse)
def join_event(
    request: JoinRequest,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Join an event by invitation token. Joining again is a no-op."""
    event, access = event_service.join_by_invitation(request.invitation_token, user_id, session)
    return _event_to_response(event, access.access_level)


@router.get("/{event_id}", response_model=EventResponse)
def get_event(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    event, level = event_service.get_event(event_id, user_id, session)
    return _event_to_response(event, level)


@router.put("/{event_id}", response_model=EventResponse)
def update_event(
    event_id: str,
    request: EventUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Update event details. Admins only."""
    event = event_service.update_event(
        event_id, request.model_dump(exclude_unset=True), user_id, session
    )
    return _event_to_response(event, AccessLevel.ADMIN)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Delete an event with all its photos and memberships. Creator only."""
    event_service.delete_event(event_id, user_id, session, blob_store)


@router.post("/{event_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_event(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    event_service.leave_event(event_id, user_id, session)


@router.post("/{event_id}/invitation", response_model=InvitationResponse)
def regenerate_invitation(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Issue a new invitation token; the old one stops working. Admins only."""
    event = event_service.regenerate_invitation(event_id, user_id, session)
    return InvitationResponse(event_id=event.id, invitation_token=event.invitation_token)


# --- Participants ---

@router.get("/{event_id}/participants", response_model=list[ParticipantResponse])
def list_participants(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Members of the event, admins first."""
    rows = membership_service.list_participants(event_id, user_id, session)
    return [
        ParticipantResponse(
            user_id=member.id,
            name=member.name,
            email=member.email,
            access_level=access.access_level,
            joined_at=access.joined_at.isoformat() if access.joined_at else "",
        )
        for access, member in rows
    ]


@router.put("/{event_id}/participants/{member_id}/access", response_model=AccessResponse)
def update_participant_access(
    event_id: str,
    member_id: str,
    request: AccessLevelRequest,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Change a member's access level. Admins only; the creator cannot be changed."""
    access = membership_service.set_level(event_id, member_id, request.access_level, user_id, session)
    return _access_to_response(access)


@router.delete("/{event_id}/participants/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_participant(
    event_id: str,
    member_id: str,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Remove a member. Admins only; the creator cannot be removed."""
    membership_service.remove(event_id, member_id, user_id, session)
