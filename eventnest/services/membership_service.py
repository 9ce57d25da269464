"""Event membership ledger: who can do what to an event.

A user's access to an event is one ``EventAccess`` row holding an
``AccessLevel``. The creator's row is level ADMIN for as long as the event
exists; ``set_level`` and ``remove`` refuse to touch it.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from eventnest.errors import CreatorImmutable, Forbidden, NotFound, ValidationFailed
from eventnest.models.event import AccessLevel, Event, EventAccess
from eventnest.models.user import User

logger = logging.getLogger(__name__)


def get_access(event_id: str, user_id: str, session: Session) -> EventAccess | None:
    return session.exec(
        select(EventAccess).where(
            EventAccess.event_id == event_id,
            EventAccess.user_id == user_id,
        )
    ).first()


def level_of(user_id: str, event_id: str, session: Session) -> AccessLevel | None:
    """The user's access level on the event, or None for no access."""
    access = get_access(event_id, user_id, session)
    return AccessLevel(access.access_level) if access else None


def require_member(event_id: str, user_id: str, session: Session) -> AccessLevel:
    level = level_of(user_id, event_id, session)
    if level is None:
        raise NotFound("Event not found")
    return level


def require_admin(event_id: str, user_id: str, session: Session) -> None:
    if require_member(event_id, user_id, session) != AccessLevel.ADMIN:
        raise Forbidden("Only admins can do this")


def validate_level(level: int) -> AccessLevel:
    try:
        return AccessLevel(level)
    except ValueError:
        raise ValidationFailed("Access level must be 0 (admin), 1 (contributor), or 2 (viewer)")


def grant(event_id: str, user_id: str, level: int, session: Session) -> EventAccess:
    """Add a membership. An existing row is returned unchanged."""
    level = validate_level(level)
    existing = get_access(event_id, user_id, session)
    if existing:
        return existing

    access = EventAccess(event_id=event_id, user_id=user_id, access_level=level)
    session.add(access)
    try:
        session.commit()
    except IntegrityError:
        # Either a concurrent grant for the same pair won, or the user or
        # event row is gone
        session.rollback()
        existing = get_access(event_id, user_id, session)
        if existing is not None:
            return existing
        if not session.get(User, user_id):
            raise NotFound("User not found")
        raise NotFound("Event not found")

    session.refresh(access)
    logger.info("Granted level %d on event %s to user %s", level, event_id, user_id)
    return access


def _guard_target(event_id: str, target_user_id: str, requester_id: str, session: Session) -> EventAccess:
    require_admin(event_id, requester_id, session)

    event = session.get(Event, event_id)
    if not event:
        raise NotFound("Event not found")
    if event.creator_id == target_user_id:
        raise CreatorImmutable()

    access = get_access(event_id, target_user_id, session)
    if not access:
        raise NotFound("User not found in event")
    return access


def set_level(event_id: str, target_user_id: str, level: int, requester_id: str, session: Session) -> EventAccess:
    """Change another member's access level. Admins only; never the creator."""
    level = validate_level(level)
    access = _guard_target(event_id, target_user_id, requester_id, session)

    access.access_level = level
    session.add(access)
    session.commit()
    session.refresh(access)
    logger.info(
        "User %s set level %d for user %s on event %s",
        requester_id, level, target_user_id, event_id,
    )
    return access


def remove(event_id: str, target_user_id: str, requester_id: str, session: Session) -> None:
    """Remove another member from the event. Admins only; never the creator."""
    access = _guard_target(event_id, target_user_id, requester_id, session)
    session.delete(access)
    session.commit()
    logger.info("User %s removed user %s from event %s", requester_id, target_user_id, event_id)


def list_participants(event_id: str, requester_id: str, session: Session) -> list[tuple[EventAccess, User]]:
    """Members of an event, admins first, join order within a level."""
    require_member(event_id, requester_id, session)
    rows = session.exec(
        select(EventAccess, User)
        .join(User, User.id == EventAccess.user_id)
        .where(EventAccess.event_id == event_id)
        .order_by(col(EventAccess.access_level).asc(), col(EventAccess.id).asc())
    ).all()
    return list(rows)
