"""Experience post data model for Aurora."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from aurora.models.user import DEFAULT_PROFILE_PHOTO


class Experience(BaseModel):
    """A user-authored post with the author's profile frozen at post time."""

    id: str = Field(..., description="Unique experience identifier (UUID v4)")
    experience: str = Field(..., description="Free-text body")
    user_id: str = Field(..., description="User ID of the author")
    user_name: str = Field(..., description="Author name at post time")
    user_email: str = Field(..., description="Author email at post time")
    user_photo: str = Field(DEFAULT_PROFILE_PHOTO, description="Author photo at post time")
    tagged_email: Optional[str] = Field(None, description="Recipient to notify (lowercase)")
    message_to_recipient: Optional[str] = Field(None, description="Note for the tagged recipient")
    created_at: datetime = Field(..., description="Post creation timestamp")
