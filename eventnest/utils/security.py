"""Security utilities: JWT tokens, password hashing, token fingerprints."""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from eventnest.config import settings
from eventnest.errors import TokenExpired, TokenInvalid


# --- Password Hashing ---

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # Malformed stored hash
        return False


# --- JWT Tokens ---

def _encode(claims: dict, token_type: str, lifetime: timedelta, secret: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": claims["sub"],
        "email": claims["email"],
        "name": claims["name"],
        "type": token_type,
        "jti": secrets.token_hex(8),
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def create_access_token(claims: dict) -> str:
    return _encode(
        claims,
        "access",
        timedelta(minutes=settings.access_token_expire_minutes),
        settings.jwt_secret,
    )


def create_refresh_token(claims: dict) -> str:
    return _encode(
        claims,
        "refresh",
        timedelta(days=settings.refresh_token_expire_days),
        settings.jwt_refresh_secret,
    )


def _decode(token: str, secret: str, token_type: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired()
    except jwt.PyJWTError:
        raise TokenInvalid()

    if payload.get("type") != token_type:
        raise TokenInvalid()
    return payload


def decode_access_token(token: str) -> dict:
    """Validate an access token. Raises TokenExpired or TokenInvalid."""
    return _decode(token, settings.jwt_secret, "access")


def decode_refresh_token(token: str) -> dict:
    """Validate a refresh token. Raises TokenExpired or TokenInvalid."""
    return _decode(token, settings.jwt_refresh_secret, "refresh")


# --- Token Hash ---

def hash_token(token: str) -> str:
    """Fingerprint a refresh token for storage."""
    return hashlib.sha256(token.encode()).hexdigest()


def token_matches(token: str, stored_hash: str | None) -> bool:
    if not stored_hash:
        return False
    return hmac.compare_digest(hash_token(token), stored_hash)


# --- Invitation ---

def generate_invitation_token() -> str:
    """32 hex characters."""
    return secrets.token_hex(16)
