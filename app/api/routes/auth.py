"""
Authentication API endpoints

Sign-up and sign-in happen on the client with the Firebase SDK; the backend
only verifies ID tokens and manages the per-user like session.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.schemas.auth import SessionResponse
from app.services.auth_service import auth_service
from app.dependencies import get_current_user, get_token_claims
from app.models.user import User

# Create router
router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.get("/session", response_model=SessionResponse)
async def get_session(claims: Dict[str, Any] = Depends(get_token_claims)):
    """
    Describe the identity behind the Bearer token

    `hasProfile` is false until the client creates the profile with
    `POST /api/v1/users/me`.
    """
    user = await auth_service.get_current_user(claims)
    return SessionResponse(
        uid=claims["uid"],
        email=claims.get("email"),
        is_admin=auth_service.is_admin(claims, user),
        has_profile=user is not None,
    )


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    """
    Logout current user

    Requires authentication. Ends the user's like session; the client should
    sign out of Firebase as well.
    """
    ended = await auth_service.logout_user(current_user.uid)
    return {"message": "Successfully logged out", "sessionEnded": ended}
