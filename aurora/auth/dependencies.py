"""FastAPI dependencies for authentication."""

import logging
from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from aurora.database.database import get_db
from aurora.database.user_repository import UserRepository
from aurora.auth.jwt import TokenService
from aurora.errors import UnauthorizedError
from aurora.models.user import User

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
AUTH_FAILED = "Authentication failed"


def get_token_service() -> TokenService:
    """Token service dependency.

    Raises:
        ConfigurationError: If JWT_SECRET is not set
    """
    return TokenService.from_env()


def get_verifying_token_service() -> Optional[TokenService]:
    """Token service for the auth gateway, or None if it cannot be built.

    A broken token configuration must not turn protected routes into 500s,
    so get_current_user reports None as a generic 401.
    """
    try:
        return get_token_service()
    except Exception as e:
        logger.error(f"Token service unavailable; rejecting authenticated requests: {type(e).__name__}")
        return None


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    tokens: Optional[TokenService] = Depends(get_verifying_token_service),
) -> User:
    """Resolve the authenticated user from the Authorization header.

    Checks run in order: header present, Bearer format, token non-empty,
    token verified, user exists. Every failure is a 401. Unexpected errors
    (token configuration, database) are logged and reported as a generic
    authentication failure rather than a 500.

    Raises:
        UnauthorizedError: On any failed check
    """
    if not authorization:
        raise UnauthorizedError("Unauthorized: Authorization header is required")

    if not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError("Unauthorized: Invalid token format (Bearer missing)")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise UnauthorizedError("Unauthorized: Token not found in header")

    if tokens is None:
        raise UnauthorizedError(AUTH_FAILED)

    try:
        # Raises InvalidTokenError / TokenExpiredError (both 401).
        user_id = tokens.verify(token)
        user = UserRepository(db).get(user_id)
    except UnauthorizedError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error while authenticating request: {type(e).__name__}: {str(e)}")
        raise UnauthorizedError(AUTH_FAILED)

    if not user:
        logger.info(f"Token references unknown user {user_id}")
        raise UnauthorizedError("Unauthorized: User associated with token not found")

    return user
