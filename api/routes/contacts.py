"""
Contact Endpoints
=================

Owner-scoped CRUD for contacts. Every route requires a valid bearer token.

POST and PATCH accept either multipart/form-data (name, details and an
optional `photo` file) or a JSON body (name, details). A photo can only be
set by uploading a file.
"""

import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from api.dependencies import get_contact_store, get_current_user, get_file_handler
from api.models.responses import ContactListResponse, ContactResponse
from api.services.owned_records import ContactStore
from api.utils.file_handler import FileHandler
from exceptions import RecordValidationError
from models import Contact, Identity


router = APIRouter()

TEXT_FIELDS = ("name", "details")


async def read_contact_payload(request: Request) -> tuple[dict[str, Any], Optional[UploadFile]]:
    """
    Read contact fields and the optional photo upload from a request.

    Returns:
        (fields, photo upload or None)

    Raises:
        RecordValidationError: If a JSON body cannot be parsed into an object
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("multipart/form-data") or content_type.startswith(
        "application/x-www-form-urlencoded"
    ):
        form = await request.form()
        fields = {key: form[key] for key in TEXT_FIELDS if isinstance(form.get(key), str)}
        photo = form.get("photo")
        if isinstance(photo, UploadFile) and photo.filename:
            return fields, photo
        return fields, None

    raw = await request.body()
    if not raw.strip():
        return {}, None
    try:
        body = json.loads(raw)
    except ValueError:
        raise RecordValidationError("Contact", [{"field": "body", "message": "Invalid JSON"}])
    if not isinstance(body, dict):
        raise RecordValidationError("Contact", [{"field": "body", "message": "Expected a JSON object"}])
    return {key: body[key] for key in TEXT_FIELDS if key in body}, None


@router.post("/contact", response_model=Contact)
async def create_contact(
    request: Request,
    user: Identity = Depends(get_current_user),
    contacts: ContactStore = Depends(get_contact_store),
    file_handler: FileHandler = Depends(get_file_handler)
):
    """
    Create a contact owned by the caller, optionally with a photo.

    Raises:
        400: Missing name or unsupported photo format
        413: Photo too large
    """
    fields, upload = await read_contact_payload(request)
    if upload is not None:
        fields["photo"] = await file_handler.save_photo(upload)

    try:
        return await contacts.create(user, fields)
    except Exception:
        file_handler.cleanup_photo(fields.get("photo"))
        raise


@router.get("/contact", response_model=ContactListResponse)
async def list_contacts(
    user: Identity = Depends(get_current_user),
    contacts: ContactStore = Depends(get_contact_store)
):
    """List the caller's contacts."""
    return ContactListResponse(contacts=await contacts.list(user))


@router.get("/contact/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: str,
    user: Identity = Depends(get_current_user),
    contacts: ContactStore = Depends(get_contact_store)
):
    """
    Get one of the caller's contacts.

    Raises:
        404: Invalid id, no such contact, or owned by another user
    """
    return ContactResponse(contact=await contacts.get(user, contact_id))


@router.patch("/contact/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: str,
    request: Request,
    user: Identity = Depends(get_current_user),
    contacts: ContactStore = Depends(get_contact_store),
    file_handler: FileHandler = Depends(get_file_handler)
):
    """
    Update name, details and/or photo of one of the caller's contacts.

    A newly uploaded photo replaces the previous upload, which is deleted.

    Raises:
        404: Invalid id, no such contact, or owned by another user
        400: Invalid field values or unsupported photo format
    """
    previous = await contacts.get(user, contact_id)
    fields, upload = await read_contact_payload(request)
    if upload is not None:
        fields["photo"] = await file_handler.save_photo(upload)

    try:
        contact = await contacts.update(user, contact_id, fields)
    except Exception:
        file_handler.cleanup_photo(fields.get("photo"))
        raise

    if upload is not None and previous.photo != contact.photo:
        file_handler.cleanup_photo(previous.photo)
    return ContactResponse(contact=contact)


@router.delete("/contact/{contact_id}", response_model=ContactResponse)
async def delete_contact(
    contact_id: str,
    user: Identity = Depends(get_current_user),
    contacts: ContactStore = Depends(get_contact_store),
    file_handler: FileHandler = Depends(get_file_handler)
):
    """
    Permanently delete one of the caller's contacts and return it.

    Raises:
        404: Invalid id, no such contact, or owned by another user
    """
    contact = await contacts.remove(user, contact_id)
    file_handler.cleanup_photo(contact.photo)
    return ContactResponse(contact=contact)
