"""
API Response Models
===================

Pydantic models for API responses.

Single records are wrapped in an envelope ({"todo": ...}) except on
creation, where the record itself is returned.
"""

from pydantic import BaseModel, Field

from models import Contact, Todo


class TodoResponse(BaseModel):
    """Envelope for a single todo."""

    todo: Todo = Field(..., description="The todo record")


class TodoListResponse(BaseModel):
    """Envelope for the caller's todos."""

    todos: list[Todo] = Field(default_factory=list, description="The caller's todos")


class ContactResponse(BaseModel):
    """Envelope for a single contact."""

    contact: Contact = Field(..., description="The contact record")


class ContactListResponse(BaseModel):
    """Envelope for the caller's contacts."""

    contacts: list[Contact] = Field(default_factory=list, description="The caller's contacts")
