"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from eventnest.api.deps import get_current_user_id
from eventnest.database import get_session
from eventnest.schemas.auth import (
    AuthResponse,
    AuthUserResponse,
    RefreshRequest,
    SigninRequest,
    SignupRequest,
    TokenPairResponse,
)
from eventnest.services.auth_service import revoke, rotate, signin, signup

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(result: dict) -> AuthResponse:
    user = result["user"]
    return AuthResponse(
        user=AuthUserResponse(id=user.id, name=user.name, email=user.email),
        access_token=result["access_token"],
        refresh_token=result["refresh_token"],
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup_user(request: SignupRequest, session: Session = Depends(get_session)):
    """Create an account. Returns the new user and a token pair."""
    result = signup(request.name, request.email, request.password, session)
    return _auth_response(result)


@router.post("/signin", response_model=AuthResponse)
def signin_user(request: SigninRequest, session: Session = Depends(get_session)):
    """Sign in with email and password."""
    result = signin(request.email, request.password, session)
    return _auth_response(result)


@router.post("/refresh", response_model=TokenPairResponse)
def refresh_tokens(request: RefreshRequest, session: Session = Depends(get_session)):
    """Exchange the current refresh token for a new pair. The old one stops working."""
    tokens = rotate(request.refresh_token, session)
    return TokenPairResponse(**tokens)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Logout: invalidate the outstanding refresh token."""
    revoke(user_id, session)
