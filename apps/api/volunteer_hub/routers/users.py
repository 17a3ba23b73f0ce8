"""Profile router - the caller's own profile."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from volunteer_hub.core.deps import get_current_user, get_db
from volunteer_hub.db.models import User
from volunteer_hub.schemas.auth import ProfileResponse, UserProfile
from volunteer_hub.services import auth_service

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
def get_profile(user: User = Depends(get_current_user)):
    return ProfileResponse(message="Profile loaded", user=auth_service.to_user_read(user))


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    body: UserProfile,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Volunteers and nonprofit admins edit their own profile."""
    try:
        updated = auth_service.update_profile(db, user, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ProfileResponse(user=auth_service.to_user_read(updated))
