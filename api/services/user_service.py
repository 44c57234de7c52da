"""
User Service
============

Account creation and credential checks. Passwords are stored as bcrypt
hashes; successful signup/signin return a freshly issued bearer token.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId

from api.utils.security import PasswordHasher, TokenService
from core.document_store import DocumentStoreProtocol
from exceptions import (
    DuplicateKeyError,
    EmailInUseError,
    InvalidCredentialsError,
    MissingCredentialsError,
)
from models import User


# Set up module logger
logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _present(value: Any) -> bool:
    """An email counts only as a non-blank string."""
    return isinstance(value, str) and bool(value.strip())


class UserService:
    """Signup, signin and user lookup against the users collection."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        token_service: TokenService,
        password_hasher: PasswordHasher
    ):
        self.store = store
        self.tokens = token_service
        self.passwords = password_hasher

    async def ensure_indexes(self) -> None:
        await self.store.ensure_unique_index(USERS_COLLECTION, "email")

    async def signup(self, email: Any, password: Any) -> str:
        """
        Create a user and return a token for it.

        Args:
            email: Email address (must not be in use)
            password: Plain text password

        Returns:
            str: Bearer token for the new user

        Raises:
            MissingCredentialsError: If email or password is missing, empty or not a string
            EmailInUseError: If a user with this email already exists
        """
        if not _present(email) or not isinstance(password, str) or not password:
            raise MissingCredentialsError()

        email = normalize_email(email)
        if await self.store.find_one(USERS_COLLECTION, {"email": email}):
            raise EmailInUseError(email)

        document = {
            "email": email,
            "password": self.passwords.hash(password),
            "created_at": datetime.now(timezone.utc),
        }
        try:
            stored = await self.store.insert_one(USERS_COLLECTION, document)
        except DuplicateKeyError:
            # Lost a race with a concurrent signup for the same email
            raise EmailInUseError(email)

        user = User.model_validate(stored)
        logger.info(f"User {user.id} signed up")
        return self.tokens.issue(user.id)

    async def authenticate(self, email: Any, password: Any) -> User:
        """
        Check an email/password pair.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        if not _present(email) or not isinstance(password, str) or not password:
            raise InvalidCredentialsError()

        doc = await self.store.find_one(USERS_COLLECTION, {"email": normalize_email(email)})
        if doc is None:
            raise InvalidCredentialsError()

        user = User.model_validate(doc)
        if not self.passwords.verify(password, user.password):
            raise InvalidCredentialsError()
        return user

    async def signin(self, email: Any, password: Any) -> str:
        """Authenticate and return a new token."""
        user = await self.authenticate(email, password)
        logger.info(f"User {user.id} signed in")
        return self.tokens.issue(user.id)

    async def get_user(self, user_id: str) -> Optional[User]:
        """Return the user with this id, or None (also for malformed ids)."""
        if not ObjectId.is_valid(user_id):
            return None
        doc = await self.store.find_one(USERS_COLLECTION, {"_id": ObjectId(user_id)})
        return User.model_validate(doc) if doc else None
