"""
Tutorium Backend — Lesson Attachment Uploads
==============================================

What:  Attach teaching materials to a lesson and serve them back.
How:   Every file of a request is validated before any is written, so a
       bad file rejects the whole upload without leaving strays on disk.
       If the database write fails after storing, the stored files are
       removed again.
"""

import logging
from pathlib import Path
from typing import List, Sequence, Tuple
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.exceptions import (
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from tutorium.models import Attachment, Lesson, Role, User
from tutorium.schemas.lesson import AttachmentResponse
from tutorium.services.access import can_view_lesson
from tutorium.services.file_service import file_service

logger = logging.getLogger(__name__)


def attachment_to_response(attachment: Attachment) -> AttachmentResponse:
    return AttachmentResponse(
        id=attachment.id,
        filename=attachment.filename,
        original_name=attachment.original_name,
        mime_type=attachment.mime_type,
        size=attachment.size,
        description=attachment.description,
        lesson_id=attachment.lesson_id,
        created_at=attachment.created_at,
        url=f"/api/uploads/{attachment.id}",
    )


class UploadService:

    async def upload(
        self,
        db: AsyncSession,
        user: User,
        lesson_id: UUID,
        files: Sequence[UploadFile],
    ) -> List[AttachmentResponse]:
        lesson = await db.get(Lesson, lesson_id)
        if lesson is None or (user.role == Role.TEACHER and lesson.teacher_id != user.id):
            raise NotFoundError(
                resource="Lesson", resource_id=lesson_id, message="Lesson not found or access denied"
            )
        if not files:
            raise ValidationError(message="No files uploaded", field="files")

        # Validate everything first
        payloads: List[Tuple[UploadFile, bytes, str, str]] = []
        for upload in files:
            name = upload.filename or ""
            file_service.validate_extension(name)
            content = await upload.read()
            ext, mime_type = file_service.validate(name, content)
            payloads.append((upload, content, ext, mime_type))

        stored: List[str] = []
        attachments: List[Attachment] = []
        try:
            for upload, content, ext, mime_type in payloads:
                absolute_path, relative_path = await file_service.store_file(content, ext)
                stored.append(absolute_path)
                attachment = Attachment(
                    filename=Path(relative_path).name,
                    original_name=upload.filename,
                    mime_type=mime_type,
                    size=len(content),
                    path=relative_path,
                    lesson_id=lesson.id,
                )
                db.add(attachment)
                attachments.append(attachment)
            await db.flush()
        except SQLAlchemyError as e:
            for path in stored:
                await file_service.cleanup_file(path)
            logger.error("Failed to save attachments for lesson %s: %s", lesson_id, str(e))
            raise DatabaseError(
                message="Could not save the uploaded files. Please try again.",
                context={"lesson_id": str(lesson_id), "original_error": type(e).__name__},
            )
        except Exception:
            for path in stored:
                await file_service.cleanup_file(path)
            raise

        logger.info("Uploaded %d file(s) to lesson %s", len(attachments), lesson_id)
        return [attachment_to_response(a) for a in attachments]

    async def locate(
        self, db: AsyncSession, user: User, attachment_id: UUID
    ) -> Tuple[Path, Attachment]:
        """Access-checked location of a stored attachment."""
        result = await db.execute(
            select(Attachment)
            .where(Attachment.id == attachment_id)
            .options(selectinload(Attachment.lesson).selectinload(Lesson.students))
        )
        attachment = result.scalar_one_or_none()
        if attachment is None:
            raise NotFoundError(
                resource="Attachment", resource_id=attachment_id, message="Attachment not found"
            )
        if not can_view_lesson(user, attachment.lesson):
            raise PermissionDeniedError(message="You do not have access to this lesson")

        return file_service.resolve_path(attachment.path), attachment


# ── Singleton Instance ────────────────────────────────────────────────────
upload_service = UploadService()
