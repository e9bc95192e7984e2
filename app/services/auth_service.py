"""
Authentication helpers on top of Firebase Auth ID tokens
"""

import logging
from typing import Any, Dict, Optional

from firebase_admin import auth as firebase_auth

from app.config import settings
from app.models.user import User
from app.services.firebase_service import firebase_service
from app.services.like_coordinator import like_sessions

logger = logging.getLogger(__name__)


async def verify_id_token(id_token: str) -> Dict[str, Any]:
    """Verify a Firebase ID token; any failure is reported as ValueError"""
    try:
        return await firebase_service.verify_id_token(id_token)
    except (firebase_auth.InvalidIdTokenError,
            firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError,
            firebase_auth.CertificateFetchError,
            ValueError) as e:
        raise ValueError(f"Firebase ID token verification failed: {e}") from e


class AuthService:
    """Service for identity and session operations"""

    def __init__(self):
        self.firebase = firebase_service
        self.sessions = like_sessions

    @staticmethod
    def is_admin(claims: Dict[str, Any], user: Optional[User] = None) -> bool:
        """
        Admin if the token carries the `admin` custom claim, the profile has
        `isAdmin`, or the email is listed in ADMIN_EMAILS.
        """
        if claims.get("admin") is True:
            return True
        if user is not None and user.is_admin:
            return True
        email = (claims.get("email") or (user.email if user else "") or "").lower()
        return bool(email) and email in settings.admin_emails_list

    async def get_current_user(self, claims: Dict[str, Any]) -> Optional[User]:
        """Profile of the token's uid, with the admin flag resolved"""
        uid = claims.get("uid")
        if not uid:
            return None
        user = await self.firebase.get_user_by_uid(uid)
        if user is None:
            return None
        if not user.is_admin and self.is_admin(claims, user):
            user = user.model_copy(update={"is_admin": True})
        return user

    async def register_profile(self, claims: Dict[str, Any], username: str = "") -> User:
        """Create the Firestore profile (with an empty like set) for a new account"""
        return await self.firebase.create_user_profile(
            uid=claims["uid"],
            email=claims.get("email"),
            username=username or claims.get("name") or "",
            photo_url=claims.get("picture"),
        )

    async def logout_user(self, uid: str) -> bool:
        """End the user's like session and release its counter subscriptions"""
        return await self.sessions.end(uid)

    async def delete_account(self, uid: str) -> bool:
        await self.sessions.end(uid)
        return await self.firebase.delete_user(uid)


# Global auth service instance
auth_service = AuthService()
