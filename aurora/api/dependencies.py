"""FastAPI dependencies that construct service handles.

Each handle is built from the environment by its own fallible initializer.
Tests replace these through `app.dependency_overrides`.
"""

import os
import logging
from functools import lru_cache
from typing import Optional
from fastapi import Depends
from sqlalchemy.orm import Session

from aurora.database.database import get_db
from aurora.database.conversation_repository import ConversationRepository
from aurora.database.experience_repository import ExperienceRepository
from aurora.database.user_repository import UserRepository
from aurora.engine.chat import ChatOrchestrator
from aurora.engine.experiences import ExperienceBoard
from aurora.errors import ConfigurationError
from aurora.integrations.completion import CompletionClient, build_completion_client
from aurora.integrations.email_sender import EmailSender
from aurora.integrations.photo_storage import PhotoStorage

logger = logging.getLogger(__name__)


def forward_history_enabled() -> bool:
    return os.getenv("CHAT_FORWARD_HISTORY", "False").lower() == "true"


@lru_cache(maxsize=1)
def get_completion_client() -> CompletionClient:
    """Completion client (cached once successfully built).

    Raises:
        ConfigurationError: If the configured provider is missing credentials
    """
    return build_completion_client()


def get_email_sender() -> Optional[EmailSender]:
    """Email sender, or None when SMTP is not configured (notifications are skipped)."""
    try:
        return EmailSender.from_env()
    except ConfigurationError as e:
        logger.warning(f"{e.message}. Email functionality will be disabled.")
        return None


def get_photo_storage() -> PhotoStorage:
    return PhotoStorage.from_env()


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_conversation_repository(db: Session = Depends(get_db)) -> ConversationRepository:
    return ConversationRepository(db)


def get_chat_orchestrator(
    conversations: ConversationRepository = Depends(get_conversation_repository),
    completion: CompletionClient = Depends(get_completion_client),
) -> ChatOrchestrator:
    return ChatOrchestrator(conversations, completion, forward_history=forward_history_enabled())


def get_experience_board(db: Session = Depends(get_db)) -> ExperienceBoard:
    return ExperienceBoard(ExperienceRepository(db))
