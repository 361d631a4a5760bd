"""Experience board: validate and persist user posts."""

import logging
import re
import uuid
from datetime import datetime
from typing import List, Optional

from aurora.database.experience_repository import ExperienceRepository
from aurora.errors import BadRequestError
from aurora.models.experience import Experience
from aurora.models.user import DEFAULT_PROFILE_PHOTO, User

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
RECENT_LIMIT = 100


def normalize_tagged_email(tagged_email: Optional[str]) -> Optional[str]:
    """Trim and lowercase a tagged email; blank means no tag.

    Raises:
        BadRequestError: If a non-blank value is not a valid email address
    """
    if tagged_email is None:
        return None
    tagged_email = tagged_email.strip()
    if not tagged_email:
        return None
    if not EMAIL_PATTERN.match(tagged_email):
        raise BadRequestError("Invalid recipient email format provided.")
    return tagged_email.lower()


class ExperienceBoard:
    """Create and list experience posts."""

    def __init__(self, experiences: ExperienceRepository):
        self.experiences = experiences

    def submit(
        self,
        author: User,
        text: Optional[str],
        tagged_email: Optional[str] = None,
        message_to_recipient: Optional[str] = None,
    ) -> Experience:
        """Persist a post with the author's profile as it is right now.

        The author snapshot comes from the caller (the authenticated user)
        and is not re-read later, so profile edits never rewrite old posts.

        Raises:
            BadRequestError: On empty text or a malformed tagged email
        """
        if not text or not text.strip():
            raise BadRequestError("Experience text cannot be empty.")

        tagged = normalize_tagged_email(tagged_email)
        message = None
        if tagged and message_to_recipient and message_to_recipient.strip():
            message = message_to_recipient.strip()

        experience = self.experiences.create(
            Experience(
                id=str(uuid.uuid4()),
                experience=text.strip(),
                user_id=author.id,
                user_name=author.name,
                user_email=author.email,
                user_photo=author.photo or DEFAULT_PROFILE_PHOTO,
                tagged_email=tagged,
                message_to_recipient=message,
                created_at=datetime.utcnow(),
            )
        )
        logger.info(f"Experience {experience.id} saved for user {author.id} (tagged={bool(tagged)})")
        return experience

    def list_recent(self, limit: int = RECENT_LIMIT) -> List[Experience]:
        return self.experiences.list_recent(limit=limit)
