"""Authentication business logic.

Signup/signin, access/refresh token issuance, refresh-token rotation and
revocation. Each user has at most one outstanding refresh token; its SHA-256
fingerprint lives in ``UserAuth.refresh_token_hash``. Presenting any other
refresh token (an older, rotated-out one, or one issued before logout) fails
with ``RefreshTokenStale`` even if its signature and expiry are still valid.
"""

import logging
import secrets
from datetime import datetime, timezone
from functools import lru_cache

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from eventnest.errors import Conflict, InvalidCredentials, NotFound, RefreshTokenStale
from eventnest.models.user import User, UserAuth
from eventnest.utils.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    hash_token,
    token_matches,
    verify_password,
)

logger = logging.getLogger(__name__)


def claims_for(user: User) -> dict:
    return {"sub": user.id, "email": user.email, "name": user.name}


def issue_pair(claims: dict) -> dict:
    """Sign a fresh access/refresh token pair for the given identity claims."""
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token(claims),
    }


def verify_access(token: str) -> dict:
    return decode_access_token(token)


def verify_refresh(token: str) -> dict:
    return decode_refresh_token(token)


def prepare_credential(user_id: str, password: str) -> UserAuth:
    """Build a credential row with the password already hashed.

    This is the only place a plaintext password becomes a stored hash.
    """
    return UserAuth(user_id=user_id, password_hash=hash_password(password))


def _get_auth(user_id: str, session: Session) -> UserAuth | None:
    return session.exec(select(UserAuth).where(UserAuth.user_id == user_id)).first()


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    """A throwaway bcrypt hash to check against when the email is unknown."""
    return hash_password(secrets.token_hex(16))


def _store_refresh_token(auth: UserAuth, refresh_token: str | None, session: Session) -> None:
    auth.refresh_token_hash = hash_token(refresh_token) if refresh_token else None
    auth.updated_at = datetime.now(timezone.utc)
    session.add(auth)


def email_taken(email: str, session: Session) -> bool:
    return session.exec(select(User.id).where(User.email == email)).first() is not None


def signup(name: str, email: str, password: str, session: Session) -> dict:
    """Create user + credential and sign the user in, all in one transaction."""
    email = email.strip().lower()
    if email_taken(email, session):
        raise Conflict("User with this email already exists")

    try:
        user = User(email=email, name=name)
        session.add(user)
        session.flush()

        auth = prepare_credential(user.id, password)
        session.add(auth)
        session.flush()

        tokens = issue_pair(claims_for(user))
        _store_refresh_token(auth, tokens["refresh_token"], session)
        session.commit()
    except IntegrityError:
        session.rollback()
        raise Conflict("User with this email already exists")
    except Exception:
        session.rollback()
        raise

    session.refresh(user)
    logger.info("Signed up user %s", user.id)
    return {"user": user, **tokens}


def signin(email: str, password: str, session: Session) -> dict:
    """Verify email/password and issue a new pair, replacing any outstanding refresh token."""
    email = email.strip().lower()
    user = session.exec(select(User).where(User.email == email)).first()
    auth = _get_auth(user.id, session) if user else None

    # Same error, and the same bcrypt cost, whether the email or the password was wrong
    if not user or not auth:
        verify_password(password, _dummy_hash())
        raise InvalidCredentials()
    if not verify_password(password, auth.password_hash):
        raise InvalidCredentials()

    tokens = issue_pair(claims_for(user))
    _store_refresh_token(auth, tokens["refresh_token"], session)
    session.commit()

    logger.info("User %s signed in", user.id)
    return {"user": user, **tokens}


def rotate(refresh_token: str, session: Session) -> dict:
    """Exchange the outstanding refresh token for a new pair.

    Two concurrent rotations of the same token race on the final write; the
    loser's new refresh token no longer matches the stored fingerprint and will
    be rejected as stale on its next use.
    """
    claims = verify_refresh(refresh_token)
    user_id = claims["sub"]

    user = session.get(User, user_id)
    auth = _get_auth(user_id, session) if user else None
    if not user or not auth or not token_matches(refresh_token, auth.refresh_token_hash):
        logger.warning("Rejected stale refresh token for user %s", user_id)
        raise RefreshTokenStale()

    tokens = issue_pair(claims_for(user))
    _store_refresh_token(auth, tokens["refresh_token"], session)
    session.commit()
    return tokens


def revoke(user_id: str, session: Session) -> None:
    """Forget the outstanding refresh token (logout)."""
    auth = _get_auth(user_id, session)
    if not auth:
        raise NotFound("User not found")
    _store_refresh_token(auth, None, session)
    session.commit()
    logger.info("Revoked refresh token for user %s", user_id)


def change_credential(user_id: str, current_password: str, new_password: str, session: Session) -> None:
    """Replace the password hash and revoke the outstanding refresh token."""
    auth = _get_auth(user_id, session)
    if not auth:
        raise NotFound("User not found")
    if not verify_password(current_password, auth.password_hash):
        raise InvalidCredentials("Current password is incorrect")

    auth.password_hash = prepare_credential(user_id, new_password).password_hash
    _store_refresh_token(auth, None, session)
    session.commit()
    logger.info("Changed password for user %s", user_id)
