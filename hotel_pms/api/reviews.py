# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Review moderation API endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.api.dependencies import StaffContext, require_permission
from hotel_pms.database import get_db
from hotel_pms.repositories.guest_portal_repository import ReviewRepository
from hotel_pms.services.activity_log_service import ActivityLogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])

REVIEW_STATUSES = frozenset({"pending", "approved", "rejected"})


class ReviewStatusRequest(BaseModel):
    """Request model for moderating a review."""

    status: str = Field(description="pending, approved or rejected")


def _review_to_response(review: Any) -> dict[str, Any]:
    """Convert review model to response dict."""
    return {
        "id": review.id,
        "booking_id": review.booking_id,
        "guest_name": review.guest_name,
        "rating": review.rating,
        "comment": review.comment,
        "status": review.status,
        "created_at": review.created_at,
    }


@router.get("")
async def list_reviews(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("reviews", "read"))],
    review_status: Annotated[str | None, Query(alias="status")] = None,
) -> list[dict[str, Any]]:
    """List reviews, newest first."""
    reviews = await ReviewRepository(db).get_all(review_status)
    return [_review_to_response(review) for review in reviews]


@router.patch("/{review_id}")
async def moderate_review(
    review_id: int,
    request: ReviewStatusRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[StaffContext, Depends(require_permission("reviews", "update"))],
) -> dict[str, Any]:
    """Approve or reject a review.

    Raises:
        HTTPException: 400 for unknown statuses, 404 if not found.
    """
    if request.status not in REVIEW_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown review status: {request.status}",
        )
    repo = ReviewRepository(db)
    review = await repo.get_by_id(review_id)
    if review is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Review not found",
        )
    review.status = request.status
    review = await repo.update(review)
    await ActivityLogService(db).log(
        request.status, "review", review.id, {"rating": review.rating}, staff.user_id
    )
    await db.commit()
    logger.info("Review %d marked %s", review.id, review.status)
    return _review_to_response(review)
