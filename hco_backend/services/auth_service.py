"""Password hashing and JWT minting/verification for administrator sessions."""

import secrets
from datetime import datetime, timedelta, timezone
from functools import lru_cache

import bcrypt
import jwt
import structlog

from hco_backend.config import get_settings
from hco_backend.exceptions import InvalidTokenError, TokenExpiredError

logger = structlog.get_logger(__name__)

# Constants
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60
REFRESH_TOKEN_EXPIRE_DAYS = 7
BCRYPT_MAX_BYTES = 72

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes and newer releases refuse longer input
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


@lru_cache
def _placeholder_hash(rounds: int) -> str:
    """Hash of a random password, checked against when no admin matched."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(secrets.token_bytes(32), salt).decode("utf-8")


class AuthService:
    """Credential codec: bcrypt hashes plus two independently signed JWTs."""

    def __init__(self):
        self.settings = get_settings()

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string
        """
        salt = bcrypt.gensalt(rounds=self.settings.bcrypt_rounds)
        hashed = bcrypt.hashpw(_password_bytes(password), salt)
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            password: Plain-text password to check
            password_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches, False otherwise (including a
            malformed stored hash)
        """
        try:
            return bcrypt.checkpw(
                _password_bytes(password),
                password_hash.encode("utf-8"),
            )
        except ValueError:
            logger.warning("password_hash_malformed")
            return False

    def verify_unknown_password(self, password: str) -> bool:
        """Spend the same bcrypt work as verify_password when no admin matched.

        Keeps login latency independent of whether the identifier exists.
        Always returns False.
        """
        self.verify_password(password, _placeholder_hash(self.settings.bcrypt_rounds))
        return False

    def create_access_token(self, admin_id: str, email: str, role: str) -> str:
        """Create a signed access token valid for one hour.

        Args:
            admin_id: Administrator UUID as string (placed in 'sub' claim)
            email: Administrator email
            role: Administrator role value

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": admin_id,
            "email": email,
            "role": role,
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        }
        token = jwt.encode(
            payload, self.settings.access_token_secret, algorithm=JWT_ALGORITHM
        )
        logger.debug(
            "access_token_created",
            admin_id=admin_id,
            expires_minutes=ACCESS_TOKEN_EXPIRE_MINUTES,
        )
        return token

    def create_refresh_token(self, admin_id: str) -> str:
        """Create a signed refresh token valid for seven days.

        A random 'jti' makes every token unique even when two are minted
        within the same second for the same administrator.
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": admin_id,
            "type": REFRESH_TOKEN_TYPE,
            "jti": secrets.token_hex(16),
            "iat": now,
            "exp": now + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
        }
        token = jwt.encode(
            payload, self.settings.refresh_token_secret, algorithm=JWT_ALGORITHM
        )
        logger.debug(
            "refresh_token_created",
            admin_id=admin_id,
            expires_days=REFRESH_TOKEN_EXPIRE_DAYS,
        )
        return token

    def validate_access_token(self, token: str) -> dict:
        """Decode and validate an access token.

        Raises:
            TokenExpiredError: If the token is past its expiry
            InvalidTokenError: If the signature, structure or type is wrong
        """
        return self._decode(
            token, self.settings.access_token_secret, ACCESS_TOKEN_TYPE
        )

    def validate_refresh_token(self, token: str) -> dict:
        """Decode and validate a refresh token (signature and expiry only).

        The stored-value comparison happens in the session service.
        """
        return self._decode(
            token, self.settings.refresh_token_secret, REFRESH_TOKEN_TYPE
        )

    def _decode(self, token: str, secret: str, expected_type: str) -> dict:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError(f"{expected_type.capitalize()} token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(
                f"Invalid {expected_type} token", detail=str(e)
            )

        if payload.get("type") != expected_type:
            raise InvalidTokenError(
                f"Invalid {expected_type} token",
                detail=f"unexpected token type {payload.get('type')!r}",
            )

        return payload
