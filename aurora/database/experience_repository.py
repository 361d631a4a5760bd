"""Repository for Experience database operations."""

import logging
from typing import List
from sqlalchemy import desc
from sqlalchemy.orm import Session

from aurora.models.experience import Experience
from aurora.database.models import ExperienceDB

logger = logging.getLogger(__name__)


class ExperienceRepository:
    """Repository for Experience database operations (create and read only)."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, experience: Experience) -> Experience:
        """Persist a new experience post."""
        try:
            experience_db = ExperienceDB.from_pydantic(experience)
            self.db.add(experience_db)
            self.db.commit()
            self.db.refresh(experience_db)
            logger.debug(f"Created experience {experience.id} by user {experience.user_id}")
            return experience_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create experience {experience.id}: {type(e).__name__}: {str(e)}")
            raise

    def list_recent(self, limit: int = 100) -> List[Experience]:
        """Get the most recent experiences, newest first."""
        experiences_db = (
            self.db.query(ExperienceDB)
            .order_by(desc(ExperienceDB.created_at))
            .limit(limit)
            .all()
        )
        return [e.to_pydantic() for e in experiences_db]
