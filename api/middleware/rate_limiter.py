"""
Rate Limiting Middleware
========================

Rate limiting setup using slowapi.

Each application gets its own Limiter, built from the Settings the app was
created with, so limits and hit counters are never shared between apps.
"""

from fastapi import FastAPI
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from config import Settings


def create_limiter(settings: Settings) -> Limiter:
    """Create an IP-based limiter, enabled or not per settings."""
    return Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def setup_rate_limiting(app: FastAPI, settings: Settings) -> Limiter:
    """
    Set up rate limiting for the FastAPI application.

    Attaches a new limiter to the app state and registers
    the exception handler for rate limit exceeded errors.

    Args:
        app: The FastAPI application instance
        settings: Settings deciding whether limits are enforced

    Returns:
        Limiter: The app's limiter, for decorating its routes

    Usage:
        limiter = setup_rate_limiting(app, settings)
        app.include_router(auth.create_router(limiter, settings))
    """
    limiter = create_limiter(settings)

    # The 429 handler reads the limiter from app state
    app.state.limiter = limiter

    # Register exception handler for rate limit exceeded
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    return limiter
