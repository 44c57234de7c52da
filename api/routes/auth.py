"""
Authentication Endpoints
========================

User registration and login (both return a bearer token), plus an
authenticated identity probe at the root path.

The router is built per application so signup/signin are limited by that
application's limiter and its configured `auth_rate_limit`.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter

from api.dependencies import get_current_user, get_user_service
from api.models.requests import CredentialsRequest
from api.models.user import TokenResponse
from api.services.user_service import UserService
from config import API_VERSION, Settings
from models import Identity


def create_router(limiter: Limiter, settings: Settings) -> APIRouter:
    """
    Build the auth router.

    Args:
        limiter: The application's rate limiter
        settings: Settings providing the signup/signin rate limit

    Returns:
        APIRouter: Router with /signup, /signin and /
    """
    router = APIRouter()

    @router.post("/signup", response_model=TokenResponse)
    @limiter.limit(settings.auth_rate_limit)
    async def signup(
        request: Request,
        body: Optional[CredentialsRequest] = None,
        users: UserService = Depends(get_user_service)
    ):
        """
        Create an account and return a token for it.

        Raises:
            422: Email or password missing, or email already in use
            429: Too many attempts from this address
        """
        body = body or CredentialsRequest()
        token = await users.signup(body.email, body.password)
        return TokenResponse(token=token)

    @router.post("/signin", response_model=TokenResponse)
    @limiter.limit(settings.auth_rate_limit)
    async def signin(
        request: Request,
        body: Optional[CredentialsRequest] = None,
        users: UserService = Depends(get_user_service)
    ):
        """
        Exchange an email/password pair for a token.

        Raises:
            401: Unknown email or wrong password
            429: Too many attempts from this address
        """
        body = body or CredentialsRequest()
        token = await users.signin(body.email, body.password)
        return TokenResponse(token=token)

    @router.get("/")
    async def whoami(user: Identity = Depends(get_current_user)):
        """
        Authenticated probe: echo the identity the token resolves to.

        Raises:
            401: Missing or invalid token
        """
        return {
            "message": "TodoBook API",
            "version": API_VERSION,
            "user_id": user.user_id,
            "email": user.email
        }

    return router
