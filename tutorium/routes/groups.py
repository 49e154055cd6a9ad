"""
Tutorium Backend — Group Routes
=================================

What:  Teacher-owned study groups, the group catalogue and student enrollment.
Who:   Teacher "My groups" screens, the student group browser, admin tools.

Ownership:
    Role checks happen in the dependencies; whether a teacher owns a
    particular group is decided by GroupService (403 otherwise).
    `/groups/all` and `/groups/user` are declared before `/groups/{group_id}`.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import get_current_user, require_staff
from tutorium.database import get_db_session
from tutorium.models import User
from tutorium.schemas.common import ErrorResponse, MessageResponse
from tutorium.schemas.group import (
    EnrollmentResponse,
    EnrollRequest,
    GroupCatalogResponse,
    GroupCreateRequest,
    GroupDetailResponse,
    GroupMessageResponse,
    GroupUpdateRequest,
    GroupWithRelations,
    UserGroupItem,
)
from tutorium.services.group_service import group_service

router = APIRouter(prefix="/api/groups", tags=["Groups"])

_owned = {
    403: {"description": "Group belongs to another teacher", "model": ErrorResponse},
    404: {"description": "Group not found", "model": ErrorResponse},
}


@router.get("", response_model=List[GroupWithRelations], summary="The caller's own active groups")
async def list_groups(
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> List[GroupWithRelations]:
    return await group_service.list_own_groups(db, user)


@router.post(
    "",
    response_model=GroupMessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Course not found", "model": ErrorResponse},
        409: {"description": "Group name already used by this teacher", "model": ErrorResponse},
    },
    summary="Create a group taught by the caller",
)
async def create_group(
    data: GroupCreateRequest,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> GroupMessageResponse:
    group = await group_service.create_group(db, user, data)
    return GroupMessageResponse(message="Group created successfully", group=group)


@router.get(
    "/all",
    response_model=GroupCatalogResponse,
    summary="All active groups, annotated for the caller",
)
async def list_all_groups(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupCatalogResponse:
    return await group_service.catalog(db, user)


@router.get(
    "/user",
    response_model=List[UserGroupItem],
    summary="Groups relevant to the caller, with progress",
)
async def list_user_groups(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserGroupItem]:
    return await group_service.user_groups(db, user)


@router.get("/{group_id}", response_model=GroupDetailResponse, responses=_owned)
async def get_group(
    group_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> GroupDetailResponse:
    return await group_service.get_group(db, user, group_id)


@router.put(
    "/{group_id}",
    response_model=GroupMessageResponse,
    responses={**_owned, 409: {"description": "Name conflict", "model": ErrorResponse}},
)
async def update_group(
    group_id: UUID,
    data: GroupUpdateRequest,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> GroupMessageResponse:
    group = await group_service.update_group(db, user, group_id, data)
    return GroupMessageResponse(message="Group updated successfully", group=group)


@router.delete(
    "/{group_id}",
    response_model=MessageResponse,
    responses={**_owned, 400: {"description": "Group has students or lessons", "model": ErrorResponse}},
)
async def delete_group(
    group_id: UUID,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await group_service.delete_group(db, user, group_id)
    return MessageResponse(message="Group deleted successfully")


# ── Enrollment ────────────────────────────────────────────────────────────


@router.post(
    "/{group_id}/enroll",
    response_model=EnrollmentResponse,
    responses={
        **_owned,
        400: {"description": "Group is full", "model": ErrorResponse},
        409: {"description": "Student already belongs to a group", "model": ErrorResponse},
    },
    summary="Put a student into the group",
)
async def enroll_student(
    group_id: UUID,
    data: EnrollRequest,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> EnrollmentResponse:
    return await group_service.enroll(db, user, group_id, data.student_id)


@router.delete(
    "/{group_id}/enroll",
    response_model=MessageResponse,
    responses={
        **_owned,
        400: {"description": "Student has attendance or feedback records", "model": ErrorResponse},
    },
    summary="Take a student out of the group",
)
async def unenroll_student(
    group_id: UUID,
    student_id: UUID = Query(..., description="Student to remove"),
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await group_service.unenroll(db, user, group_id, student_id)
    return MessageResponse(message="Student unenrolled successfully")
