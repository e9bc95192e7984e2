"""
User Models for Mi Asesor Vial Backend

This module defines the User model that represents the profile document
stored in Firebase Firestore.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


# Helper function for timezone-aware UTC datetime
def utc_now():
    """Get current UTC datetime (timezone-aware)"""
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    """User role enumeration"""

    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """
    Complete User model representing a user in Firestore

    Collection: users/
    Document ID: uid (Firebase Auth UID)

    `liked_article_slugs` is the user's like set. It is written only through
    the like set service with set semantics.
    """

    uid: str = Field(..., description="Firebase Authentication UID")
    username: str = Field(
        default="", max_length=100, description="Firebase Auth displayName")
    email: Optional[str] = Field(default=None)
    photo_url: Optional[str] = Field(
        default=None, description="URL to profile picture", alias="photoURL")
    is_admin: bool = Field(
        default=False, description="Administrator flag", alias="isAdmin")
    liked_article_slugs: list[str] = Field(
        default_factory=list, description="Slugs of liked articles", alias="likedArticleSlugs"
    )
    created_at: Optional[datetime] = Field(
        default_factory=utc_now, description="Account creation timestamp", alias="createdAt"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=utc_now, description="Last update timestamp", alias="updatedAt"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "uid": "firebase_user_uid_123",
                "username": "Juan Pérez",
                "email": "juan@example.com",
                "photoURL": None,
                "isAdmin": False,
                "likedArticleSlugs": ["entendiendo-limites-velocidad"],
            }
        }
    )

    @property
    def role(self) -> UserRole:
        return UserRole.ADMIN if self.is_admin else UserRole.USER


# Helper function to convert Firestore document to User model
def firestore_user_to_model(doc_data: dict, uid: str) -> User:
    return User.model_validate({**doc_data, "uid": uid})


# Helper function to convert User model to Firestore document
def user_model_to_firestore(user: User) -> dict:
    # Use by_alias=True to get camelCase for Firestore
    data = user.model_dump(by_alias=True)
    # Exclude uid as it's typically the document ID
    data.pop("uid", None)
    return data
