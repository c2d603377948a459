# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Shared FastAPI dependencies for staff routes."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.config import get_settings
from hotel_pms.database import get_db
from hotel_pms.middleware.auth import get_current_user
from hotel_pms.repositories.staff_repository import StaffRepository
from hotel_pms.services.rbac import ROLE_OWNER, has_permission

logger = logging.getLogger(__name__)

STANDALONE_USER_ID = "standalone"


@dataclass(frozen=True)
class StaffContext:
    """The staff member making a request."""

    user_id: str
    role: str
    staff_id: int | None = None
    name: str | None = None


async def get_staff_context(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> StaffContext:
    """Resolve the staff member behind the request.

    In standalone mode requests without an identity act as the owner.

    Raises:
        HTTPException: 401 without identity, 403 for unknown staff.
    """
    user_id = get_current_user(request)
    if user_id is None:
        if get_settings().standalone_mode:
            return StaffContext(user_id=STANDALONE_USER_ID, role=ROLE_OWNER)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    staff = await StaffRepository(db).get_by_user_id(user_id)
    if staff is None:
        logger.warning("User %s is not a staff member", user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a staff member",
        )
    return StaffContext(
        user_id=user_id, role=staff.role, staff_id=staff.id, name=staff.name
    )


def require_permission(
    resource: str, action: str
) -> Callable[..., Awaitable[StaffContext]]:
    """Build a dependency that enforces a role permission.

    Args:
        resource: Resource name such as ``bookings``.
        action: One of create, read, update, delete.

    Returns:
        Dependency returning the StaffContext when allowed.
    """

    async def dependency(
        staff: Annotated[StaffContext, Depends(get_staff_context)],
    ) -> StaffContext:
        if not has_permission(staff.role, resource, action):
            logger.warning(
                "Denied %s %s to %s (%s)", action, resource, staff.user_id, staff.role
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions to {action} {resource}",
            )
        return staff

    return dependency
