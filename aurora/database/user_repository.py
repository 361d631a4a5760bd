"""Repository for User database operations."""

import logging
from datetime import datetime
from typing import Dict, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aurora.errors import ConflictError, NotFoundError
from aurora.models.user import User
from aurora.database.models import UserDB

logger = logging.getLogger(__name__)

EDITABLE_PROFILE_FIELDS = ("name", "email", "photo", "address", "phone", "date_of_birth")


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        return user_db.to_pydantic() if user_db else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        user_db = self.db.query(UserDB).filter(UserDB.email == email).first()
        return user_db.to_pydantic() if user_db else None

    def get_credentials(self, email: str) -> Optional[Tuple[User, str]]:
        """Get (user, password_hash) for login, or None if no such email."""
        user_db = self.db.query(UserDB).filter(UserDB.email == email).first()
        if not user_db:
            return None
        return user_db.to_pydantic(), user_db.password_hash

    def create(self, user: User, password_hash: str) -> User:
        """Create a new user.

        Raises:
            ConflictError: If the email is already registered (no row is created)
        """
        if self.db.query(UserDB.id).filter(UserDB.email == user.email).first():
            raise ConflictError("Email already exists.")
        try:
            user_db = UserDB.from_pydantic(user, password_hash)
            self.db.add(user_db)
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user.id}: {user.email}")
            return user_db.to_pydantic()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email.
            self.db.rollback()
            raise ConflictError("Email already exists.")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user {user.id}: {type(e).__name__}: {str(e)}")
            raise

    def update_profile(self, user_id: str, updates: Dict) -> User:
        """Apply editable profile fields to a user.

        Args:
            user_id: User to update
            updates: Mapping of field name to new value; keys outside
                EDITABLE_PROFILE_FIELDS are ignored

        Raises:
            NotFoundError: If the user does not exist
            ConflictError: If the new email belongs to another account
        """
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        if not user_db:
            raise NotFoundError("User not found for update")

        new_email = updates.get("email")
        if new_email and new_email != user_db.email:
            taken = (
                self.db.query(UserDB.id)
                .filter(UserDB.email == new_email, UserDB.id != user_id)
                .first()
            )
            if taken:
                raise ConflictError("Email already in use by another account.")

        for field in EDITABLE_PROFILE_FIELDS:
            if field in updates:
                setattr(user_db, field, updates[field])
        user_db.updated_at = datetime.utcnow()

        try:
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Updated user {user_id}: {sorted(updates)}")
            return user_db.to_pydantic()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Email already in use by another account.")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def set_photo(self, user_id: str, photo: str) -> User:
        """Replace the user's profile photo reference."""
        return self.update_profile(user_id, {"photo": photo})
