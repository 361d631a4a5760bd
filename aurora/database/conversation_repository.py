"""Repository for Conversation database operations.

Every read, append and delete is scoped by (conversation_id, user_id). A
conversation that exists but belongs to someone else is indistinguishable
from one that does not exist.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional
from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from aurora.errors import NotFoundError
from aurora.models.conversation import Conversation, ConversationSummary, Message
from aurora.database.models import ConversationDB, MessageDB

logger = logging.getLogger(__name__)


class ConversationRepository:
    """Repository for Conversation database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _owned(self, user_id: str, conversation_id: str):
        return self.db.query(ConversationDB).filter(
            ConversationDB.id == conversation_id,
            ConversationDB.user_id == user_id,
        )

    def create(self, conversation: Conversation) -> Conversation:
        """Create a new conversation together with its initial messages."""
        try:
            conversation_db = ConversationDB.from_pydantic(conversation)
            self.db.add(conversation_db)
            self.db.commit()
            self.db.refresh(conversation_db)
            logger.debug(f"Created conversation {conversation.id} for user {conversation.user_id}")
            return conversation_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create conversation {conversation.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, user_id: str, conversation_id: str) -> Optional[Conversation]:
        """Get a conversation with its full message list, or None if absent/not owned."""
        conversation_db = self._owned(user_id, conversation_id).first()
        return conversation_db.to_pydantic() if conversation_db else None

    def exists(self, user_id: str, conversation_id: str) -> bool:
        return self.db.query(self._owned(user_id, conversation_id).exists()).scalar()

    def list_for_user(self, user_id: str) -> List[ConversationSummary]:
        """List a user's conversations (no messages), most recently active first."""
        rows = (
            self.db.query(
                ConversationDB.id,
                ConversationDB.title,
                ConversationDB.last_activity,
                ConversationDB.created_at,
            )
            .filter(ConversationDB.user_id == user_id)
            .order_by(desc(ConversationDB.last_activity))
            .all()
        )
        return [
            ConversationSummary(id=r.id, title=r.title, last_activity=r.last_activity, created_at=r.created_at)
            for r in rows
        ]

    def append_messages(
        self,
        user_id: str,
        conversation_id: str,
        messages: List[Message],
        now: Optional[datetime] = None,
    ) -> Conversation:
        """Append messages and bump last_activity in a single transaction.

        The conversation row is locked for the duration of the transaction
        (SELECT ... FOR UPDATE where the backend supports it), so concurrent
        appends to the same conversation serialize instead of interleaving.
        Either all messages are inserted and last_activity is updated, or
        nothing changes.

        Raises:
            NotFoundError: If the conversation does not exist or is not owned by user_id
        """
        now = now or datetime.utcnow()
        try:
            conversation_db = self._owned(user_id, conversation_id).with_for_update().first()
            if not conversation_db:
                raise NotFoundError("Chat not found or you do not have permission.")

            last_position = (
                self.db.query(func.max(MessageDB.position))
                .filter(MessageDB.conversation_id == conversation_id)
                .scalar()
            )
            next_position = 0 if last_position is None else last_position + 1
            for offset, message in enumerate(messages):
                message_db = MessageDB.from_pydantic(message, position=next_position + offset)
                message_db.conversation_id = conversation_id
                self.db.add(message_db)

            # last_activity must strictly increase, even for same-tick appends.
            if conversation_db.last_activity and now <= conversation_db.last_activity:
                now = conversation_db.last_activity + timedelta(microseconds=1)
            conversation_db.last_activity = now
            conversation_db.updated_at = now

            self.db.commit()
        except NotFoundError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to append to conversation {conversation_id}: {type(e).__name__}: {str(e)}")
            raise

        self.db.refresh(conversation_db)
        logger.debug(f"Appended {len(messages)} messages to conversation {conversation_id}")
        return conversation_db.to_pydantic()

    def delete(self, user_id: str, conversation_id: str) -> bool:
        """Delete a conversation and its messages. Returns False if absent/not owned."""
        conversation_db = self._owned(user_id, conversation_id).first()
        if not conversation_db:
            return False
        try:
            self.db.delete(conversation_db)
            self.db.commit()
            logger.debug(f"Deleted conversation {conversation_id} for user {user_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete conversation {conversation_id}: {type(e).__name__}: {str(e)}")
            raise
