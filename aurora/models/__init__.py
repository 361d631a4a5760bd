"""Data models for Aurora."""

from aurora.models.user import User, DEFAULT_PROFILE_PHOTO
from aurora.models.conversation import (
    Conversation,
    ConversationSummary,
    Message,
    MessageRole,
    MAX_TITLE_LENGTH,
)
from aurora.models.experience import Experience

__all__ = [
    "User",
    "DEFAULT_PROFILE_PHOTO",
    "Conversation",
    "ConversationSummary",
    "Message",
    "MessageRole",
    "MAX_TITLE_LENGTH",
    "Experience",
]
