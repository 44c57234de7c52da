"""
User Models
===========

Pydantic models for user authentication.
"""

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    """Bearer token returned by /signup and /signin."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"token": "eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1NiJ9..."}
        }
    )

    token: str = Field(..., description="Bearer token; send it in the authorization header")
