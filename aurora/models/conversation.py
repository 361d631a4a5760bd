"""Conversation and message data models for Aurora."""

from datetime import datetime
from enum import Enum
from typing import List
from pydantic import BaseModel, Field, field_validator

MAX_TITLE_LENGTH = 100
DEFAULT_CONVERSATION_TITLE = "Untitled Chat"


class MessageRole(str, Enum):
    """Who authored a message."""
    USER = "user"
    BOT = "bot"
    ERROR = "error"
    SYSTEM = "system"
    INTEL = "AURORA INTEL"


class Message(BaseModel):
    """A single message embedded in a conversation."""

    role: MessageRole = Field(..., description="Message author role")
    content: str = Field(..., description="Message text (non-empty)")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="When the message was created")

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message content cannot be empty.")
        return v

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class Conversation(BaseModel):
    """A titled, append-only chat session owned by one user."""

    id: str = Field(..., description="Unique conversation identifier (UUID v4)")
    user_id: str = Field(..., description="User ID who owns this conversation")
    title: str = Field(DEFAULT_CONVERSATION_TITLE, max_length=MAX_TITLE_LENGTH, description="Conversation title")
    messages: List[Message] = Field(default_factory=list, description="Messages in chronological order")
    last_activity: datetime = Field(..., description="Timestamp of the last appended message")
    created_at: datetime = Field(..., description="Conversation creation timestamp")
    updated_at: datetime = Field(..., description="Conversation last update timestamp")

    @field_validator("title")
    @classmethod
    def _title_default(cls, v: str) -> str:
        v = v.strip()
        return v or DEFAULT_CONVERSATION_TITLE


class ConversationSummary(BaseModel):
    """List-view projection of a conversation (no messages)."""

    id: str
    title: str
    last_activity: datetime
    created_at: datetime
