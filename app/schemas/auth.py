"""
Authentication and profile request/response schemas
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from app.models.user import User, UserRole


class ProfileCreate(BaseModel):
    """Schema for creating the profile after Firebase sign-up"""

    username: str = Field("", max_length=100)

    model_config = ConfigDict(
        json_schema_extra={"example": {"username": "Juan Pérez"}}
    )


class UserUpdate(BaseModel):
    """Schema for updating the current user's profile"""

    username: Optional[str] = Field(None, min_length=2, max_length=100)
    photo_url: Optional[str] = Field(None, alias="photoURL")

    model_config = ConfigDict(populate_by_name=True)


class UserResponse(BaseModel):
    """Schema for user data in responses"""

    uid: str
    username: str
    email: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    is_admin: bool = Field(False, alias="isAdmin")
    role: UserRole = UserRole.USER
    liked_article_slugs: list[str] = Field(default_factory=list, alias="likedArticleSlugs")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(**user.model_dump(), role=user.role)


class SessionResponse(BaseModel):
    uid: str
    email: Optional[str] = None
    is_admin: bool = Field(False, alias="isAdmin")
    has_profile: bool = Field(False, alias="hasProfile")

    model_config = ConfigDict(populate_by_name=True)
