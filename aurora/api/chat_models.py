"""Request/response models for chat and experience endpoints.

Field names on the wire are camelCase (chatId, lastUpdate, taggedEmail, ...)
to match the web client.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from aurora.models.conversation import Conversation, ConversationSummary, Message
from aurora.models.experience import Experience


class _CamelModel(BaseModel):
    class Config:
        """Pydantic configuration."""
        populate_by_name = True


class ChatRequest(_CamelModel):
    prompt: Optional[str] = None
    chat_id: Optional[str] = Field(None, alias="chatId")


class UpdatedChat(_CamelModel):
    id: str
    last_update: datetime = Field(..., alias="lastUpdate")


class ChatResponse(_CamelModel):
    """New chats carry newChatId/title; continued chats carry updatedChat."""
    answer: str
    new_chat_id: Optional[str] = Field(None, alias="newChatId")
    title: Optional[str] = None
    updated_chat: Optional[UpdatedChat] = Field(None, alias="updatedChat")


class ChatListItem(_CamelModel):
    id: str
    title: str
    last_update: datetime = Field(..., alias="lastUpdate")

    @classmethod
    def from_summary(cls, summary: ConversationSummary) -> "ChatListItem":
        return cls(id=summary.id, title=summary.title, last_update=summary.last_activity)


class ChatDetail(_CamelModel):
    id: str
    title: str
    messages: List[Message]
    last_update: datetime = Field(..., alias="lastUpdate")
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ChatDetail":
        return cls(
            id=conversation.id,
            title=conversation.title,
            messages=conversation.messages,
            last_update=conversation.last_activity,
            created_at=conversation.created_at,
        )


class MessageResponse(BaseModel):
    message: str


class ExperienceRequest(_CamelModel):
    experience: Optional[str] = None
    tagged_email: Optional[str] = Field(None, alias="taggedEmail")
    message_to_recipient: Optional[str] = Field(None, alias="messageToRecipient")


class ExperienceOut(_CamelModel):
    id: str
    experience: str
    user_id: str = Field(..., alias="userId")
    user_name: str = Field(..., alias="userName")
    user_email: str = Field(..., alias="userEmail")
    user_photo: str = Field(..., alias="userPhoto")
    tagged_email: Optional[str] = Field(None, alias="taggedEmail")
    message_to_recipient: Optional[str] = Field(None, alias="messageToRecipient")
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_experience(cls, experience: Experience) -> "ExperienceOut":
        return cls(**experience.model_dump())


class ExperienceCreateResponse(BaseModel):
    message: str
    experience: ExperienceOut
