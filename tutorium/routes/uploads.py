"""
Tutorium Backend — Teaching Material Upload Routes
====================================================

What:  Attach files (slides, worksheets, audio) to a lesson and download them.
How:   Multipart form with `lesson_id` and one or more `files`. Everything is
       validated before anything is written; UploadService removes stored
       files again if the database insert fails.

Security:
    - Downloads are resolved inside STORAGE_ROOT only (no path traversal)
    - The download check is the same rule that governs viewing the lesson
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import get_current_user, require_staff
from tutorium.database import get_db_session
from tutorium.models import User
from tutorium.schemas.common import ErrorResponse
from tutorium.schemas.lesson import UploadResponse
from tutorium.services.upload_service import upload_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/uploads", tags=["Uploads"])


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Unsupported file type or file too large", "model": ErrorResponse},
        404: {"description": "Lesson not found or access denied", "model": ErrorResponse},
    },
    summary="Attach teaching materials to a lesson",
)
async def upload_files(
    lesson_id: UUID = Form(..., description="Lesson to attach the files to"),
    files: List[UploadFile] = File(..., description="One or more files"),
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> UploadResponse:
    attachments = await upload_service.upload(db, user, lesson_id, files)
    return UploadResponse(message="Files uploaded successfully", attachments=attachments)


@router.get(
    "/{attachment_id}",
    summary="Download an attachment",
    responses={
        200: {"description": "The stored file"},
        403: {"description": "No access to the lesson", "model": ErrorResponse},
        404: {"description": "Attachment or file not found", "model": ErrorResponse},
    },
)
async def download_file(
    attachment_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FileResponse:
    path, attachment = await upload_service.locate(db, user, attachment_id)
    return FileResponse(
        path=str(path),
        media_type=attachment.mime_type,
        filename=attachment.original_name,
        headers={"Cache-Control": "private, max-age=3600"},
    )
