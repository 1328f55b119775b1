# src/guestbook/api/v1/endpoints/attachments.py
"""File upload endpoints."""

import asyncio

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from guestbook.schemas.message import Attachment
from guestbook.services.errors import GuestbookError

from ..dependencies import StorageDep, http_error

router = APIRouter(prefix="/attachments", tags=["attachments"])


@router.post("/", response_model=Attachment, status_code=status.HTTP_201_CREATED)
async def upload_attachment(storage: StorageDep, file: UploadFile = File(...)) -> Attachment:
    """Store a file and return the metadata to send with a new message."""
    filename = file.filename or "file"
    try:
        # boto3 is blocking; keep it off the event loop.
        return await asyncio.to_thread(storage.upload, file.file, filename, file.content_type)
    except GuestbookError as exc:
        raise http_error(exc) from exc
    finally:
        await file.close()


@router.delete("/{key:path}")
async def delete_attachment(key: str, storage: StorageDep) -> dict[str, str]:
    """Remove a stored file by its storage key."""
    deleted = await asyncio.to_thread(storage.delete, key)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="File deletion failed")
    return {"status": "success"}
