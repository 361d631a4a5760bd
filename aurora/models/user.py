"""User data model for Aurora."""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

DEFAULT_PROFILE_PHOTO = "/uploads/default-profile-placeholder.png"


class User(BaseModel):
    """Account record as exposed to the application (never carries the password hash)."""

    id: str = Field(..., description="Unique user identifier (UUID v4)")
    name: str = Field(..., description="User display name")
    email: str = Field(..., description="User email address (unique, lowercase)")
    photo: str = Field(DEFAULT_PROFILE_PHOTO, description="Profile photo URL or server path")
    address: str = Field("", description="Postal address")
    phone: str = Field("", description="Phone number")
    date_of_birth: Optional[date] = Field(None, description="Date of birth")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")
