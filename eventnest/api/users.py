"""User profile API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from eventnest.api.deps import get_current_user_id
from eventnest.database import get_session
from eventnest.models.user import User
from eventnest.schemas.user import PasswordChangeRequest, UserProfileResponse, UserUpdateRequest
from eventnest.services.user_service import (
    change_password,
    delete_profile,
    get_profile,
    update_profile,
)
from eventnest.utils.storage import BlobStore, get_blob_store

router = APIRouter(prefix="/users", tags=["users"])


def _profile_response(user: User) -> UserProfileResponse:
    return UserProfileResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        created_at=user.created_at.isoformat() if user.created_at else "",
    )


@router.get("/me", response_model=UserProfileResponse)
def get_my_profile(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    return _profile_response(get_profile(user_id, session))


@router.put("/me", response_model=UserProfileResponse)
def update_my_profile(
    request: UserUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    user = update_profile(user_id, request.name, request.email, session)
    return _profile_response(user)


@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT)
def change_my_password(
    request: PasswordChangeRequest,
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
):
    """Change password. Signs out the current refresh token."""
    change_password(user_id, request.current_password, request.new_password, session)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_my_profile(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Delete the account with its events, photos and memberships."""
    delete_profile(user_id, session, blob_store)
