"""
User profile management API endpoints
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, status, Depends

from app.schemas.auth import ProfileCreate, UserResponse, UserUpdate
from app.services.auth_service import auth_service
from app.services.firebase_service import firebase_service
from app.dependencies import get_current_user, get_token_claims
from app.models.user import User

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_my_profile(current_user: User = Depends(get_current_user)):
    """
    Get current user's profile

    Requires authentication. Includes the slugs of the liked articles.
    """
    return UserResponse.from_user(current_user)


@router.post("/me", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_my_profile(
    profile_data: ProfileCreate,
    claims: Dict[str, Any] = Depends(get_token_claims),
):
    """
    Create the profile document after signing up with Firebase

    - **username**: Display name (optional, defaults to the email's local part)

    The like set starts empty. Calling this again returns the existing profile.
    """
    user = await auth_service.register_profile(claims, profile_data.username)
    return UserResponse.from_user(user)


@router.put("/me", response_model=UserResponse)
async def update_my_profile(
    profile_data: UserUpdate, current_user: User = Depends(get_current_user)
):
    """
    Update current user's profile

    - **username**: New display name (optional)
    - **photoURL**: URL to profile picture (optional)
    """
    update_data = profile_data.model_dump(exclude_none=True)
    if not update_data:
        return UserResponse.from_user(current_user)

    try:
        updated_user = await firebase_service.update_user(current_user.uid, update_data)
    except Exception as e:
        logger.error("Profile update failed for %s: %s", current_user.uid, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error updating profile",
        )
    if updated_user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.from_user(updated_user)


@router.delete("/me")
async def delete_my_account(current_user: User = Depends(get_current_user)):
    """
    Delete current user's account

    Requires authentication. This action is irreversible. Favorite counts the
    user contributed to are left as they are.
    """
    try:
        await auth_service.delete_account(current_user.uid)
    except Exception as e:
        logger.error("Account deletion failed for %s: %s", current_user.uid, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error deleting account",
        )
    return {"message": "Account deleted successfully"}
