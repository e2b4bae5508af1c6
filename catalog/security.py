"""Security helpers: password hashing and identity tokens.

Passwords are hashed with Argon2 through :class:`passlib.context.CryptContext`.
Identity tokens are HS256 JSON Web Tokens produced and checked with :mod:`jwt`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

TOKEN_ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """The token is malformed, forged, expired or issued by someone else."""


class TokenSigningError(Exception):
    """A token could not be produced."""


class PasswordHasher:
    """Salted, deliberately slow one-way password hashing."""

    def __init__(self, schemes: tuple = ("argon2",)):
        self._context = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, password: str) -> str:
        """Return a salted hash for ``password``."""
        return self._context.hash(password)

    def verify(self, password: str, hashed_password: str) -> bool:
        """Tell whether ``password`` matches ``hashed_password``.

        Raises:
            ValueError: The stored hash is not a recognised hash
        """
        return self._context.verify(password, hashed_password)


@dataclass(frozen=True)
class IdentityClaims:
    """Verified content of an identity token."""

    subject: str
    issuer: str
    expires_at: datetime
    user_id: Optional[int] = None


class TokenService:
    """Issues and verifies signed, time-limited identity tokens."""

    def __init__(self, key: str, expiration: timedelta, issuer: str = "bookshelf-server"):
        self._key = key
        self.expiration = expiration
        self.issuer = issuer

    def issue(self, username: str, user_id: Optional[int] = None, now: Optional[datetime] = None) -> str:
        """Create a token for ``username`` expiring after the configured duration."""
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": username,
            "iss": self.issuer,
            "iat": issued_at,
            "exp": issued_at + self.expiration,
        }
        if user_id is not None:
            claims["id"] = user_id
        try:
            return jwt.encode(claims, self._key, algorithm=TOKEN_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise TokenSigningError(str(exc)) from exc

    def verify(self, token: str) -> IdentityClaims:
        """Check signature, issuer and expiry and return the claims.

        Raises:
            InvalidTokenError: The token cannot be trusted
        """
        try:
            payload = jwt.decode(
                token,
                self._key,
                algorithms=[TOKEN_ALGORITHM],
                issuer=self.issuer,
                options={"require": ["exp", "sub", "iss"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(str(exc)) from exc

        return IdentityClaims(
            subject=payload["sub"],
            issuer=payload["iss"],
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            user_id=payload.get("id"),
        )
