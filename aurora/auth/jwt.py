"""JWT token generation and validation for Aurora."""

import os
import jwt
from datetime import datetime, timedelta
from dotenv import load_dotenv

from aurora.errors import ConfigurationError, InvalidTokenError, TokenExpiredError

load_dotenv()

DEFAULT_ALGORITHM = "HS256"
DEFAULT_EXPIRATION_MINUTES = 60


class TokenService:
    """Issues and verifies signed session tokens carrying a user id.

    Stateless: the only state is the signing configuration.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = DEFAULT_ALGORITHM,
        expiration_minutes: int = DEFAULT_EXPIRATION_MINUTES,
    ):
        """Initialize the token service.

        Args:
            secret: Signing secret
            algorithm: JWT algorithm (HMAC family)
            expiration_minutes: Token lifetime from issuance

        Raises:
            ConfigurationError: If no signing secret is configured
        """
        if not secret:
            raise ConfigurationError("JWT secret not configured.")
        self.secret = secret
        self.algorithm = algorithm
        self.expiration_minutes = expiration_minutes

    @classmethod
    def from_env(cls) -> "TokenService":
        """Build from JWT_SECRET / JWT_ALGORITHM / JWT_EXPIRATION_MINUTES."""
        return cls(
            secret=os.getenv("JWT_SECRET", ""),
            algorithm=os.getenv("JWT_ALGORITHM", DEFAULT_ALGORITHM),
            expiration_minutes=int(os.getenv("JWT_EXPIRATION_MINUTES", str(DEFAULT_EXPIRATION_MINUTES))),
        )

    def issue(self, user_id: str, now: datetime = None) -> str:
        """Create a signed access token for a user.

        Args:
            user_id: User ID to encode in token
            now: Issuance time (defaults to current UTC time)

        Returns:
            Encoded JWT token string
        """
        now = now or datetime.utcnow()
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + timedelta(minutes=self.expiration_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Validate a token and return the user ID it carries.

        Raises:
            TokenExpiredError: If the token is past its expiry
            InvalidTokenError: If the signature does not match or the token is malformed
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidTokenError:
            raise InvalidTokenError()

        user_id = payload.get("sub")
        if not user_id:
            raise InvalidTokenError("Unauthorized: Invalid token payload (Missing user id)")
        return user_id
