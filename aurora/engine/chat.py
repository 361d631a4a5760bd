"""Chat orchestration: prompt in, bot reply out, both persisted.

A prompt either continues an existing conversation (which must exist and be
owned by the caller) or starts a new one titled after the prompt.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from aurora.database.conversation_repository import ConversationRepository
from aurora.engine.formatting import format_response_text, generate_title
from aurora.errors import BadGatewayError, BadRequestError, NotFoundError
from aurora.integrations.completion import CompletionClient
from aurora.models.conversation import Conversation, Message, MessageRole

logger = logging.getLogger(__name__)


@dataclass
class ChatResult:
    """Outcome of one chat turn."""
    answer: str
    conversation_id: str
    title: str
    last_activity: datetime
    is_new: bool


class ChatOrchestrator:
    """Runs one prompt/answer exchange against the completion service."""

    def __init__(
        self,
        conversations: ConversationRepository,
        completion: CompletionClient,
        forward_history: bool = False,
    ):
        """
        Args:
            conversations: Conversation store
            completion: Completion service client
            forward_history: Send prior messages of an existing conversation
                to the completion service along with the prompt
        """
        self.conversations = conversations
        self.completion = completion
        self.forward_history = forward_history

    def handle(self, user_id: str, prompt, conversation_id: Optional[str] = None) -> ChatResult:
        """Answer a prompt and persist the user/bot message pair.

        Raises:
            BadRequestError: If the prompt is not a non-empty string
            NotFoundError: If conversation_id is given but not found for this user
            BadGatewayError: If the completion service returns no usable text
        """
        if not isinstance(prompt, str) or not prompt.strip():
            raise BadRequestError("Prompt is required and must be a non-empty string.")
        # The completion service gets the prompt as sent; storage and title use it trimmed.
        if conversation_id:
            return self._continue(user_id, conversation_id, prompt)
        return self._start(user_id, prompt)

    def _ask(self, prompt: str, history=None) -> str:
        raw = self.completion.complete(prompt, history=history)
        if not isinstance(raw, str) or not raw.strip():
            logger.error("Completion service returned an empty or non-text reply")
            raise BadGatewayError("invalid upstream response")
        answer = format_response_text(raw)
        if not answer:
            # Reply was nothing but markup.
            raise BadGatewayError("invalid upstream response")
        return answer

    def _continue(self, user_id: str, conversation_id: str, prompt: str) -> ChatResult:
        logger.debug(f"Continuing conversation {conversation_id} for user {user_id}")
        history = None
        if self.forward_history:
            existing = self.conversations.get(user_id, conversation_id)
            if existing is None:
                raise NotFoundError("Chat not found or you do not have permission.")
            history = existing.messages
        elif not self.conversations.exists(user_id, conversation_id):
            raise NotFoundError("Chat not found or you do not have permission.")

        user_message = Message(role=MessageRole.USER, content=prompt.strip())
        answer = self._ask(prompt, history=history)
        bot_message = Message(role=MessageRole.BOT, content=answer)

        # Re-checks ownership inside the append transaction; the conversation
        # may have been deleted while the completion call was in flight.
        updated = self.conversations.append_messages(user_id, conversation_id, [user_message, bot_message])
        logger.debug(f"Updated conversation {conversation_id} ({len(updated.messages)} messages)")
        return ChatResult(
            answer=answer,
            conversation_id=updated.id,
            title=updated.title,
            last_activity=updated.last_activity,
            is_new=False,
        )

    def _start(self, user_id: str, prompt: str) -> ChatResult:
        title = generate_title(prompt)
        user_message = Message(role=MessageRole.USER, content=prompt.strip())
        answer = self._ask(prompt)
        bot_message = Message(role=MessageRole.BOT, content=answer)

        now = datetime.utcnow()
        conversation = self.conversations.create(
            Conversation(
                id=str(uuid.uuid4()),
                user_id=user_id,
                title=title,
                messages=[user_message, bot_message],
                last_activity=now,
                created_at=now,
                updated_at=now,
            )
        )
        logger.info(f"Created conversation {conversation.id} for user {user_id}")
        return ChatResult(
            answer=answer,
            conversation_id=conversation.id,
            title=conversation.title,
            last_activity=conversation.last_activity,
            is_new=True,
        )
