"""SQLAlchemy database models for Aurora."""

from datetime import datetime
import uuid
from sqlalchemy import Column, String, Integer, Text, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from aurora.database.database import Base
from aurora.models.user import DEFAULT_PROFILE_PHOTO
from aurora.models.conversation import DEFAULT_CONVERSATION_TITLE, MAX_TITLE_LENGTH


def enum_to_value(enum_obj) -> str:
    """Convert enum to string value (handles both enum and string)."""
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    photo = Column(String, nullable=False, default=DEFAULT_PROFILE_PHOTO)
    address = Column(String, nullable=False, default="")
    phone = Column(String, nullable=False, default="")
    date_of_birth = Column(Date, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model (password hash is dropped)."""
        from aurora.models.user import User

        return User(
            id=self.id,
            name=self.name,
            email=self.email,
            photo=self.photo or DEFAULT_PROFILE_PHOTO,
            address=self.address or "",
            phone=self.phone or "",
            date_of_birth=self.date_of_birth,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, user, password_hash: str):
        """Create database model from Pydantic model."""
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            password_hash=password_hash,
            photo=user.photo,
            address=user.address,
            phone=user.phone,
            date_of_birth=user.date_of_birth,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class ConversationDB(Base):
    """Database model for Conversation."""

    __tablename__ = "conversations"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(MAX_TITLE_LENGTH), nullable=False, default=DEFAULT_CONVERSATION_TITLE)
    last_activity = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    messages = relationship(
        "MessageDB",
        order_by="MessageDB.position",
        cascade="all, delete-orphan",
    )

    def to_pydantic(self):
        """Convert database model to Pydantic model (messages in insertion order)."""
        from aurora.models.conversation import Conversation

        return Conversation(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            messages=[m.to_pydantic() for m in self.messages],
            last_activity=self.last_activity,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, conversation):
        """Create database model (with message rows) from Pydantic model."""
        conversation_db = cls(
            id=conversation.id,
            user_id=conversation.user_id,
            title=conversation.title,
            last_activity=conversation.last_activity,
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
        )
        conversation_db.messages = [
            MessageDB.from_pydantic(message, position=i)
            for i, message in enumerate(conversation.messages)
        ]
        return conversation_db


class MessageDB(Base):
    """Database model for a message row; has no identity outside its conversation."""

    __tablename__ = "messages"
    __table_args__ = (
        UniqueConstraint("conversation_id", "position", name="uq_message_position"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        String, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Zero-based index within the conversation; defines chronological order.
    position = Column(Integer, nullable=False)
    role = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        from aurora.models.conversation import Message

        return Message(role=self.role, content=self.content, timestamp=self.timestamp)

    @classmethod
    def from_pydantic(cls, message, position: int):
        return cls(
            position=position,
            role=enum_to_value(message.role),
            content=message.content,
            timestamp=message.timestamp,
        )


class ExperienceDB(Base):
    """Database model for Experience."""

    __tablename__ = "experiences"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    experience = Column(Text, nullable=False)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Author snapshot at post time; never re-derived from users.
    user_name = Column(String, nullable=False)
    user_email = Column(String, nullable=False)
    user_photo = Column(String, nullable=False, default=DEFAULT_PROFILE_PHOTO)

    tagged_email = Column(String, nullable=True)
    message_to_recipient = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from aurora.models.experience import Experience

        return Experience(
            id=self.id,
            experience=self.experience,
            user_id=self.user_id,
            user_name=self.user_name,
            user_email=self.user_email,
            user_photo=self.user_photo or DEFAULT_PROFILE_PHOTO,
            tagged_email=self.tagged_email,
            message_to_recipient=self.message_to_recipient,
            created_at=self.created_at,
        )

    @classmethod
    def from_pydantic(cls, experience):
        """Create database model from Pydantic model."""
        return cls(
            id=experience.id,
            experience=experience.experience,
            user_id=experience.user_id,
            user_name=experience.user_name,
            user_email=experience.user_email,
            user_photo=experience.user_photo,
            tagged_email=experience.tagged_email,
            message_to_recipient=experience.message_to_recipient,
            created_at=experience.created_at,
        )
