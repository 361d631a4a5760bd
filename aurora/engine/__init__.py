"""Chat and experience engine for Aurora."""

from aurora.engine.formatting import format_response_text, generate_title
from aurora.engine.chat import ChatOrchestrator, ChatResult
from aurora.engine.experiences import ExperienceBoard, normalize_tagged_email

__all__ = [
    "format_response_text",
    "generate_title",
    "ChatOrchestrator",
    "ChatResult",
    "ExperienceBoard",
    "normalize_tagged_email",
]
