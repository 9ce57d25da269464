"""Common API dependencies: caller identity from the bearer access token."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from eventnest.errors import TokenError
from eventnest.services.auth_service import verify_access

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict:
    """Validate the access token and return its claims.

    Identity is taken from the token on every request; nothing is cached.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return verify_access(credentials.credentials)
    except TokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_user_id(claims: dict = Depends(get_current_claims)) -> str:
    return claims["sub"]
