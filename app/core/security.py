"""Password hashing and JWT issue/verification for authentication."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

if TYPE_CHECKING:
    from app.core.config import Settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@dataclass(frozen=True)
class TokenClaims:
    """Verified token content. role is the value at issue time and may be stale."""

    account_id: int
    role: str
    expires_at: datetime


class InvalidTokenError(Exception):
    """Token is malformed, badly signed, expired, or lacks a usable subject."""


class TokenIssuer:
    """Issues and verifies signed, time-bound identity tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        default_ttl: timedelta = timedelta(hours=1),
    ) -> None:
        if not secret:
            raise ValueError("Token secret must be non-empty")
        self._secret = secret
        self._algorithm = algorithm
        self._default_ttl = default_ttl

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenIssuer":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            default_ttl=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
        )

    def issue(self, account_id: int, role: str, ttl: timedelta | None = None) -> str:
        """Create a JWT with sub (account id), role, exp and iat."""
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(account_id),
            "role": role,
            "exp": now + (ttl or self._default_ttl),
            "iat": now,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a JWT.
        Raises InvalidTokenError on bad signature, expiry, or malformed payload.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError("Invalid or expired token") from e
        try:
            account_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError("Invalid token payload") from e
        return TokenClaims(
            account_id=account_id,
            role=str(payload.get("role", "")),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
