"""
Tutorium Backend — Recording Routes
=====================================

What:  Completed lessons that carry a video link ("recordings").
How:   Recordings are ordinary rows in `lessons`; RecordingService filters
       them by status and link and applies the per-role visibility rules.

Visibility:
    admin    every recording
    teacher  recordings they taught
    student  their group's recordings and individual ones they attended
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import get_current_user, require_staff
from tutorium.database import get_db_session
from tutorium.models import User
from tutorium.schemas.common import ErrorResponse, MessageResponse
from tutorium.schemas.lesson import (
    RecordingCreateRequest,
    RecordingDetailResponse,
    RecordingMessageResponse,
    RecordingResponse,
    RecordingUpdateRequest,
)
from tutorium.services.recording_service import recording_service

router = APIRouter(prefix="/api/recordings", tags=["Recordings"])

_scoped = {
    403: {"description": "No access to this recording", "model": ErrorResponse},
    404: {"description": "Recording not found", "model": ErrorResponse},
}


@router.get("", response_model=List[RecordingResponse], summary="Recordings visible to the caller")
async def list_recordings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[RecordingResponse]:
    return await recording_service.list_recordings(db, user)


@router.post(
    "",
    response_model=RecordingMessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing or foreign group, invalid students", "model": ErrorResponse},
        404: {"description": "Topic not found", "model": ErrorResponse},
    },
    summary="Publish a completed lesson with its video",
)
async def create_recording(
    data: RecordingCreateRequest,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> RecordingMessageResponse:
    recording = await recording_service.create_recording(db, user, data)
    return RecordingMessageResponse(message="Recording created successfully", recording=recording)


@router.get(
    "/{recording_id}",
    response_model=RecordingDetailResponse,
    responses=_scoped,
    summary="Recording detail with feedback and attendance",
    description="A student opening a recording counts as one view.",
)
async def get_recording(
    recording_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> RecordingDetailResponse:
    return await recording_service.get_recording(db, user, recording_id)


@router.put(
    "/{recording_id}",
    response_model=RecordingMessageResponse,
    responses={**_scoped, 400: {"description": "Invalid group or students", "model": ErrorResponse}},
)
async def update_recording(
    recording_id: UUID,
    data: RecordingUpdateRequest,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> RecordingMessageResponse:
    recording = await recording_service.update_recording(db, user, recording_id, data)
    return RecordingMessageResponse(message="Recording updated successfully", recording=recording)


@router.delete(
    "/{recording_id}",
    response_model=MessageResponse,
    responses={
        **_scoped,
        400: {"description": "Recording has feedback, attendance or files", "model": ErrorResponse},
    },
)
async def delete_recording(
    recording_id: UUID,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await recording_service.delete_recording(db, user, recording_id)
    return MessageResponse(message="Recording deleted successfully")
