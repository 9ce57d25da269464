"""User profile management."""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from eventnest.errors import BlobStoreError, Conflict, NotFound
from eventnest.models.event import Event, EventAccess
from eventnest.models.photo import Photo
from eventnest.models.user import User, UserAuth
from eventnest.services.auth_service import change_credential, email_taken
from eventnest.services.event_service import purge_event
from eventnest.utils.storage import BlobStore

logger = logging.getLogger(__name__)


def get_profile(user_id: str, session: Session) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def update_profile(user_id: str, name: str | None, email: str | None, session: Session) -> User:
    user = get_profile(user_id, session)

    if email is not None:
        email = email.strip().lower()
        if email != user.email and email_taken(email, session):
            raise Conflict("Email is already in use")
        user.email = email
    if name is not None:
        user.name = name

    user.updated_at = datetime.now(timezone.utc)
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # Another account took the email between the check and the write
        session.rollback()
        raise Conflict("Email is already in use")
    session.refresh(user)
    return user


def change_password(user_id: str, current_password: str, new_password: str, session: Session) -> None:
    change_credential(user_id, current_password, new_password, session)


def delete_profile(user_id: str, session: Session, blob_store: BlobStore) -> None:
    """Delete the user and everything they own, in one transaction.

    Order: events the user created (with their photos and memberships), the
    user's photos in other events, remaining memberships, credential, user.
    """
    user = get_profile(user_id, session)

    try:
        owned = session.exec(select(Event).where(Event.creator_id == user_id)).all()
        for event in owned:
            purge_event(event, session, blob_store)

        photos = session.exec(select(Photo).where(Photo.user_id == user_id)).all()
        for photo in photos:
            try:
                blob_store.delete(photo.image_url)
            except BlobStoreError as e:
                logger.warning("Failed to delete blob for photo %s: %s", photo.id, e)
            session.delete(photo)
        session.flush()

        for access in session.exec(select(EventAccess).where(EventAccess.user_id == user_id)).all():
            session.delete(access)
        for auth in session.exec(select(UserAuth).where(UserAuth.user_id == user_id)).all():
            session.delete(auth)
        session.flush()

        session.delete(user)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info("Deleted user %s and %d owned event(s)", user_id, len(owned))
