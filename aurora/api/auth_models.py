"""Request/response models for authentication and profile endpoints."""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field

from aurora.models.user import User


class SignupRequest(BaseModel):
    """Request model for account creation (presence is checked by the route)."""
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    """Request model for login."""
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    """Editable profile fields; only fields present in the body are applied."""
    name: Optional[str] = None
    email: Optional[str] = None
    photo: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = Field(None, alias="dateOfBirth")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True


class UserOut(BaseModel):
    """Public projection of a user (never includes the password hash)."""
    id: str
    name: str
    email: str
    photo: str
    address: str = ""
    phone: str = ""
    date_of_birth: Optional[date] = Field(None, alias="dateOfBirth")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            photo=user.photo,
            address=user.address,
            phone=user.phone,
            date_of_birth=user.date_of_birth,
        )


class SignupResponse(BaseModel):
    message: str
    user: UserOut


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserOut


class ProfileUpdateResponse(BaseModel):
    message: str
    user: UserOut


class UploadResponse(BaseModel):
    message: str
    photo: str
