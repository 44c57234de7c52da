"""
Dependency Injection Functions
==============================

FastAPI dependency injection for settings, services, and authentication.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from api.services.owned_records import ContactStore, TodoStore
from api.services.user_service import UserService
from api.utils.file_handler import FileHandler
from api.utils.security import TokenService
from config import Settings
from core.document_store import DocumentStoreProtocol
from exceptions import InvalidTokenError
from models import Identity

# Tokens arrive in the authorization header, raw or with a "Bearer " prefix
authorization_header = APIKeyHeader(name="authorization", auto_error=False)


def _service(request: Request, name: str):
    """
    Fetch a service created during application startup.

    Raises:
        HTTPException: 503 if the application has not finished starting
    """
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up."
        )
    return service


def get_app_settings(request: Request) -> Settings:
    return _service(request, "settings")


def get_document_store(request: Request) -> DocumentStoreProtocol:
    return _service(request, "store")


def get_token_service(request: Request) -> TokenService:
    return _service(request, "token_service")


def get_user_service(request: Request) -> UserService:
    return _service(request, "user_service")


def get_todo_store(request: Request) -> TodoStore:
    return _service(request, "todo_store")


def get_contact_store(request: Request) -> ContactStore:
    return _service(request, "contact_store")


def get_file_handler(request: Request) -> FileHandler:
    return _service(request, "file_handler")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"}
    )


def extract_token(header_value: Optional[str]) -> Optional[str]:
    """Return the token from an authorization header value, if any."""
    if not header_value:
        return None
    value = header_value.strip()
    scheme, _, rest = value.partition(" ")
    if scheme.lower() == "bearer" and rest:
        value = rest.strip()
    return value or None


async def get_current_user(
    authorization: Optional[str] = Depends(authorization_header),
    token_service: TokenService = Depends(get_token_service),
    user_service: UserService = Depends(get_user_service)
) -> Identity:
    """
    Dependency to get current authenticated user from the bearer token.

    Every owner-scoped route depends on this. It runs before the route
    body, so a rejected request never reaches the record stores.

    Returns:
        Identity: The caller's user id and email

    Raises:
        HTTPException: 401 if the token is missing, invalid, or names a
            user that does not exist
    """
    token = extract_token(authorization)
    if token is None:
        raise _unauthorized("Authentication required")

    try:
        user_id = token_service.verify(token)
    except InvalidTokenError:
        raise _unauthorized("Could not validate credentials")

    user = await user_service.get_user(user_id)
    if user is None:
        raise _unauthorized("Could not validate credentials")

    return Identity(user_id=user.id, email=user.email)
