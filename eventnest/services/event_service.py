"""Event lifecycle: create, update, join/leave, invitation rotation, delete.

An event is created together with its creator's ADMIN membership and deleted
together with all of its photos and memberships; both happen inside a single
transaction, so no reader sees an event without its owner or a half-deleted
event.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from eventnest.config import settings
from eventnest.errors import (
    BlobStoreError,
    Conflict,
    CreatorCannotLeave,
    Forbidden,
    InvalidDate,
    InvalidInvitation,
    NotFound,
)
from eventnest.models.event import AccessLevel, Event, EventAccess
from eventnest.models.photo import Photo
from eventnest.models.user import User
from eventnest.services.membership_service import (
    get_access,
    grant,
    require_admin,
    require_member,
)
from eventnest.utils.security import generate_invitation_token
from eventnest.utils.storage import BlobStore

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "date")


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def validate_date(date: datetime) -> datetime:
    date = as_utc(date)
    if date < datetime.now(timezone.utc):
        raise InvalidDate()
    return date


def _owner_membership(event: Event, creator_id: str) -> EventAccess:
    return EventAccess(event_id=event.id, user_id=creator_id, access_level=AccessLevel.ADMIN)


def _token_in_use(token: str, session: Session) -> bool:
    return session.exec(select(Event.id).where(Event.invitation_token == token)).first() is not None


def create_event(data: dict, creator_id: str, session: Session) -> Event:
    """Insert the event and its creator's ADMIN membership atomically."""
    date = validate_date(data["date"])
    if not session.get(User, creator_id):
        raise NotFound("User not found")

    supplied_token = data.get("invitation_token")
    attempts = 1 if supplied_token else max(settings.invitation_token_attempts, 1)

    for attempt in range(1, attempts + 1):
        token = supplied_token or generate_invitation_token()
        if _token_in_use(token, session):
            if supplied_token:
                raise Conflict("Invitation token already in use")
            logger.debug("Invitation token collision, regenerating (attempt %d)", attempt)
            continue

        event = Event(
            title=data["title"],
            description=data.get("description"),
            date=date,
            creator_id=creator_id,
            invitation_token=token,
        )
        try:
            session.add(event)
            session.flush()
            session.add(_owner_membership(event, creator_id))
            session.commit()
        except IntegrityError:
            # Another insert grabbed the token between the check and the flush
            session.rollback()
            if supplied_token:
                raise Conflict("Invitation token already in use")
            continue
        except Exception:
            session.rollback()
            raise

        session.refresh(event)
        logger.info("Created event '%s' (%s) by user %s", event.title, event.id, creator_id)
        return event

    raise Conflict("Could not generate a unique invitation token")


def get_event(event_id: str, user_id: str, session: Session) -> tuple[Event, AccessLevel]:
    """An event together with the caller's access level. Members only."""
    level = require_member(event_id, user_id, session)
    event = session.get(Event, event_id)
    if not event:
        raise NotFound("Event not found")
    return event, level


def list_user_events(user_id: str, session: Session) -> list[tuple[Event, AccessLevel]]:
    """Events the user belongs to, latest date first."""
    rows = session.exec(
        select(Event, EventAccess.access_level)
        .join(EventAccess, EventAccess.event_id == Event.id)
        .where(EventAccess.user_id == user_id)
        .order_by(col(Event.date).desc())
    ).all()
    return [(event, AccessLevel(level)) for event, level in rows]


def update_event(event_id: str, patch: dict, requester_id: str, session: Session) -> Event:
    """Apply title/description/date changes. Admins only."""
    require_admin(event_id, requester_id, session)
    event = session.get(Event, event_id)
    if not event:
        raise NotFound("Event not found")

    changes = {k: v for k, v in patch.items() if k in UPDATABLE_FIELDS}
    if "date" in changes:
        if changes["date"] is None:
            del changes["date"]
        else:
            changes["date"] = validate_date(changes["date"])
    if "title" in changes and changes["title"] is None:
        del changes["title"]

    for field, value in changes.items():
        setattr(event, field, value)
    event.updated_at = datetime.now(timezone.utc)

    session.add(event)
    session.commit()
    session.refresh(event)
    logger.info("User %s updated event %s (%s)", requester_id, event_id, ", ".join(changes) or "no changes")
    return event


def purge_event(event: Event, session: Session, blob_store: BlobStore) -> int:
    """Delete an event's photos, memberships and the event row, in that order.

    Blob deletion is best-effort: a failure is logged and the photo row is
    deleted anyway. Does not commit. Returns the number of photos removed.
    """
    photos = session.exec(select(Photo).where(Photo.event_id == event.id)).all()
    for photo in photos:
        try:
            blob_store.delete(photo.image_url)
        except BlobStoreError as e:
            logger.warning("Failed to delete blob for photo %s of event %s: %s", photo.id, event.id, e)

    for photo in photos:
        session.delete(photo)
    session.flush()

    accesses = session.exec(select(EventAccess).where(EventAccess.event_id == event.id)).all()
    for access in accesses:
        session.delete(access)
    session.flush()

    session.delete(event)
    session.flush()
    return len(photos)


def delete_event(event_id: str, requester_id: str, session: Session, blob_store: BlobStore) -> None:
    """Delete an event and everything scoped to it. Only the original creator may do this."""
    require_member(event_id, requester_id, session)
    event = session.get(Event, event_id)
    if not event:
        raise NotFound("Event not found")
    if event.creator_id != requester_id:
        raise Forbidden("Only the event creator can delete the event")

    try:
        photo_count = purge_event(event, session, blob_store)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("Deleted event %s with %d photo(s)", event_id, photo_count)


def join_by_invitation(token: str, user_id: str, session: Session) -> tuple[Event, EventAccess]:
    """Join the event carrying this invitation token.

    Joining twice is not an error: an existing membership is returned as is,
    so a member who was promoted after joining keeps their level.
    """
    event = session.exec(select(Event).where(Event.invitation_token == token)).first()
    if not event:
        raise InvalidInvitation()
    if not session.get(User, user_id):
        raise NotFound("User not found")

    access = get_access(event.id, user_id, session)
    if access is None:
        access = grant(event.id, user_id, settings.join_access_level, session)
        logger.info("User %s joined event %s by invitation", user_id, event.id)
    return event, access


def leave_event(event_id: str, user_id: str, session: Session) -> None:
    require_member(event_id, user_id, session)
    event = session.get(Event, event_id)
    if not event:
        raise NotFound("Event not found")
    if event.creator_id == user_id:
        raise CreatorCannotLeave()

    access = get_access(event_id, user_id, session)
    session.delete(access)
    session.commit()
    logger.info("User %s left event %s", user_id, event_id)


def regenerate_invitation(event_id: str, requester_id: str, session: Session) -> Event:
    """Replace the invitation token. Old links stop working; members are unaffected."""
    require_admin(event_id, requester_id, session)
    event = session.get(Event, event_id)
    if not event:
        raise NotFound("Event not found")

    for _ in range(max(settings.invitation_token_attempts, 1)):
        token = generate_invitation_token()
        if _token_in_use(token, session):
            continue
        event.invitation_token = token
        event.updated_at = datetime.now(timezone.utc)
        session.add(event)
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            event = session.get(Event, event_id)
            continue
        session.refresh(event)
        logger.info("User %s regenerated invitation for event %s", requester_id, event_id)
        return event

    raise Conflict("Could not generate a unique invitation token")
