"""
Security Utilities
==================

Bearer token issuing/verification and password hashing.
"""

import time
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from config import Settings, get_settings
from exceptions import ConfigurationError, InvalidTokenError


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


class TokenService:
    """
    Issue and verify signed bearer tokens.

    A token is a JWT whose claims are the user id (`sub`) and the issuance
    time in epoch milliseconds (`iat`). Tokens carry an `exp` claim only
    when `jwt_access_token_expire_minutes` is configured; otherwise they
    stay valid until the signing secret changes.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_minutes: Optional[int] = None
    ):
        """
        Args:
            secret_key: Signing secret
            algorithm: Symmetric JWT algorithm
            expire_minutes: Token lifetime, None for non-expiring tokens

        Raises:
            ConfigurationError: If the secret is empty
        """
        if not secret_key:
            raise ConfigurationError(
                "jwt_secret_key",
                "a signing secret is required (set TODOBOOK_JWT_SECRET_KEY)"
            )
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "TokenService":
        settings = settings or get_settings()
        return cls(
            secret_key=settings.jwt_secret_key or "",
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.jwt_access_token_expire_minutes
        )

    def issue(self, user_id: str) -> str:
        """
        Create a token for a user.

        Args:
            user_id: The user's id

        Returns:
            str: The encoded JWT
        """
        issued_at = now_ms()
        claims = {"sub": user_id, "iat": issued_at}

        if self.expire_minutes is not None:
            # exp is in seconds, per RFC 7519
            claims["exp"] = issued_at // 1000 + self.expire_minutes * 60

        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """
        Verify a token and return the user id it was issued for.

        Args:
            token: The encoded JWT

        Returns:
            str: The subject (user id)

        Raises:
            InvalidTokenError: If the token is malformed, tampered with,
                signed with another secret, expired, or has no subject
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm]
            )
        except JWTError as e:
            raise InvalidTokenError(f"Could not validate credentials: {e}")

        user_id = payload.get("sub")
        if not user_id:
            raise InvalidTokenError("Token has no subject")
        return user_id


class PasswordHasher:
    """One-way bcrypt password hashing via passlib."""

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against a hash.

        Returns False (instead of raising) for hashes passlib cannot parse.
        """
        try:
            return self._context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            return False
