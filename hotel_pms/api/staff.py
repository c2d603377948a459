# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Staff administration API endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.api.dependencies import (
    StaffContext,
    get_staff_context,
    require_permission,
)
from hotel_pms.database import get_db
from hotel_pms.models.staff import Staff
from hotel_pms.repositories.staff_repository import StaffRepository
from hotel_pms.services.activity_log_service import ActivityLogService
from hotel_pms.services.rbac import (
    ROLE_STAFF,
    can_assign_role,
    can_manage_staff,
    get_role_description,
    get_role_display,
    get_role_level,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/staff", tags=["Staff"])


class StaffResponse(BaseModel):
    """Response model for a staff member."""

    id: int = Field(description="Staff ID")
    user_id: str = Field(description="Identity provider user ID")
    name: str = Field(description="Full name")
    email: str = Field(description="Email")
    phone: str | None = Field(default=None, description="Phone")
    role: str = Field(description="Role")
    role_display: str = Field(description="Role display name")


class StaffCreateRequest(BaseModel):
    """Request model for adding a staff member."""

    user_id: str = Field(min_length=1, max_length=100, description="User ID")
    name: str = Field(min_length=1, max_length=255, description="Full name")
    email: str = Field(min_length=3, max_length=255, description="Email")
    phone: str | None = Field(default=None, description="Phone")
    role: str = Field(default=ROLE_STAFF, description="Role")


class StaffUpdateRequest(BaseModel):
    """Request model for updating a staff member."""

    name: str | None = Field(default=None, description="Full name")
    phone: str | None = Field(default=None, description="Phone")
    role: str | None = Field(default=None, description="Role")


def _staff_to_response(member: Any) -> dict[str, Any]:
    """Convert staff model to response dict."""
    return {
        "id": member.id,
        "user_id": member.user_id,
        "name": member.name,
        "email": member.email,
        "phone": member.phone,
        "role": member.role,
        "role_display": get_role_display(member.role),
    }


async def _get_manageable(
    repo: StaffRepository, staff_id: int, actor: StaffContext
) -> Staff:
    """Get a staff member the actor may manage."""
    member = await repo.get_by_id(staff_id)
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Staff member not found",
        )
    if not can_manage_staff(actor.role, member.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions to manage this staff member",
        )
    return member


def _check_assignable(actor: StaffContext, role: str) -> None:
    """Reject roles the actor may not hand out."""
    if not can_assign_role(actor.role, role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Cannot assign role: {role}",
        )


@router.get("/me")
async def get_me(
    staff: Annotated[StaffContext, Depends(get_staff_context)],
) -> dict[str, Any]:
    """Describe the calling staff member's role."""
    return {
        "user_id": staff.user_id,
        "staff_id": staff.staff_id,
        "name": staff.name,
        "role": staff.role,
        "role_display": get_role_display(staff.role),
        "role_description": get_role_description(staff.role),
        "role_level": get_role_level(staff.role),
    }


@router.get("", response_model=list[StaffResponse])
async def list_staff(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("employees", "read"))],
) -> list[dict[str, Any]]:
    """List staff members."""
    members = await StaffRepository(db).get_all()
    return [_staff_to_response(member) for member in members]


@router.post("", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
async def create_staff(
    request: StaffCreateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[
        StaffContext, Depends(require_permission("employees", "create"))
    ],
) -> dict[str, Any]:
    """Add a staff member.

    Raises:
        HTTPException: 403 for roles the caller may not assign,
            409 when the user or email is already registered.
    """
    _check_assignable(staff, request.role)
    repo = StaffRepository(db)
    try:
        member = await repo.create(
            Staff(
                user_id=request.user_id,
                name=request.name,
                email=request.email.strip().lower(),
                phone=request.phone,
                role=request.role,
            )
        )
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A staff member with this user ID or email already exists",
        ) from e

    await ActivityLogService(db).log(
        "created",
        "employee",
        member.id,
        {"name": member.name, "role": member.role},
        staff.user_id,
    )
    await db.commit()
    logger.info("Added staff member %s as %s", member.email, member.role)
    return _staff_to_response(member)


@router.patch("/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: int,
    request: StaffUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[
        StaffContext, Depends(require_permission("employees", "update"))
    ],
) -> dict[str, Any]:
    """Update a staff member.

    Raises:
        HTTPException: 403 if the caller may not manage the member or
            assign the role, 404 if unknown.
    """
    repo = StaffRepository(db)
    member = await _get_manageable(repo, staff_id, staff)
    if request.role is not None and request.role != member.role:
        _check_assignable(staff, request.role)
        member.role = request.role
    if request.name is not None:
        member.name = request.name
    if request.phone is not None:
        member.phone = request.phone
    member = await repo.update(member)

    await ActivityLogService(db).log(
        "updated",
        "employee",
        member.id,
        {"name": member.name, "role": member.role},
        staff.user_id,
    )
    await db.commit()
    return _staff_to_response(member)


@router.delete("/{staff_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_staff(
    staff_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[
        StaffContext, Depends(require_permission("employees", "delete"))
    ],
) -> None:
    """Remove a staff member.

    Raises:
        HTTPException: 400 when removing yourself, 403 if the caller may not
            manage the member, 404 if unknown.
    """
    if staff.staff_id == staff_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot remove your own account",
        )
    repo = StaffRepository(db)
    member = await _get_manageable(repo, staff_id, staff)
    details = {"name": member.name, "role": member.role}
    await repo.delete(member)
    await ActivityLogService(db).log(
        "deleted", "employee", staff_id, details, staff.user_id
    )
    await db.commit()
    logger.info("Removed staff member %d", staff_id)
