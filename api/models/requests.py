"""
API Request Models
==================

Pydantic models for API request validation.

Credentials and record payloads are checked by the services (missing or
non-string credentials are a 422, invalid record fields a 400), so route
bodies stay permissive here.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class CredentialsRequest(BaseModel):
    """Email/password body of /signup and /signin."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "email": "a@x.com",
                "password": "secret1"
            }
        }
    )

    email: Optional[Any] = Field(default=None, description="Account email address")
    password: Optional[Any] = Field(default=None, description="Account password")


class TodoPayload(BaseModel):
    """Body of POST /todos and PATCH /todos/{id}."""

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "text": "buy milk",
                "completed": False
            }
        }
    )

    text: Optional[Any] = Field(default=None, description="Todo text")
    completed: Optional[Any] = Field(default=None, description="Completion flag (PATCH only)")

    def fields(self) -> dict[str, Any]:
        """The fields the client actually sent."""
        return self.model_dump(exclude_unset=True)
