"""
Domain Models for TodoBook API
==============================

This module defines the core data structures used throughout the application.
We use Pydantic for:

1. **Validation**: Record fields are checked before they reach the store
2. **Serialization**: Records keep their stored key names (`_id`,
   `_creator`, `completedAt`) on the wire
3. **Documentation**: Self-documenting with type hints

Design Principle: These models are "pure" - they have no dependencies on
the web framework or on a particular store backend.
"""

from datetime import datetime
from typing import Annotated, Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator


# Trimmed, non-empty text
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
TrimmedText = Annotated[str, StringConstraints(strip_whitespace=True)]


class Identity(BaseModel):
    """
    An authenticated caller, as resolved from a bearer token.

    Attributes:
        user_id: 24-hex ObjectId string of the user
        email: The user's email address
    """
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., description="User id (24-hex ObjectId string)")
    email: str = Field(..., description="User email address")


class StoredModel(BaseModel):
    """Base for models read back from the document store."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id", description="24-hex ObjectId of the document")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        """ObjectIds from the store are exposed as hex strings."""
        if isinstance(v, ObjectId):
            return str(v)
        return v


class User(StoredModel):
    """A registered user. The password field holds a bcrypt hash."""

    email: str = Field(..., description="Unique, lower-cased email address")
    password: str = Field(..., repr=False, description="bcrypt password hash")
    created_at: Optional[datetime] = Field(default=None)


class OwnedRecord(StoredModel):
    """
    A record visible only to the user who created it.

    The creator is assigned once at creation and never changes.
    """

    creator: str = Field(..., alias="_creator", description="Id of the owning user")

    @field_validator("creator", mode="before")
    @classmethod
    def stringify_creator(cls, v):
        if isinstance(v, ObjectId):
            return str(v)
        return v


# =============================================================================
# Todos
# =============================================================================

class Todo(OwnedRecord):
    """A todo item."""

    text: str
    completed: bool = False
    completed_at: Optional[int] = Field(
        default=None,
        alias="completedAt",
        description="Completion time in epoch milliseconds"
    )


class TodoCreate(BaseModel):
    """Fields accepted when creating a todo."""

    model_config = ConfigDict(extra="ignore")

    text: RequiredText


class TodoUpdate(BaseModel):
    """Fields a todo PATCH may change. completedAt is derived, never sent."""

    model_config = ConfigDict(extra="ignore")

    text: Optional[RequiredText] = None
    # Only a boolean true counts as completed; the store derives the rest
    completed: Optional[Any] = None


# =============================================================================
# Contacts
# =============================================================================

class Contact(OwnedRecord):
    """An address-book contact with an optional photo."""

    name: str
    details: Optional[str] = None
    photo: str


class ContactCreate(BaseModel):
    """Fields accepted when creating a contact."""

    model_config = ConfigDict(extra="ignore")

    name: RequiredText
    details: Optional[TrimmedText] = None
    photo: Optional[str] = None


class ContactUpdate(BaseModel):
    """Fields a contact PATCH may change."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[RequiredText] = None
    details: Optional[TrimmedText] = None
    photo: Optional[str] = None
