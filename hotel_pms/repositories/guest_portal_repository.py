# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repositories for guest service requests and reviews."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.guest_portal import GuestRequest, Review


class GuestRequestRepository:
    """Repository for GuestRequest operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_for_booking(self, booking_id: int) -> Sequence[GuestRequest]:
        """Get requests of a booking, newest first."""
        result = await self._session.execute(
            select(GuestRequest)
            .where(GuestRequest.booking_id == booking_id)
            .order_by(GuestRequest.created_at.desc(), GuestRequest.id.desc())
        )
        return result.scalars().all()

    async def create(self, request: GuestRequest) -> GuestRequest:
        """Create a new request."""
        self._session.add(request)
        await self._session.flush()
        await self._session.refresh(request)
        return request


class ReviewRepository:
    """Repository for Review operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_for_booking(self, booking_id: int) -> Review | None:
        """Get the review of a booking, if any."""
        result = await self._session.execute(
            select(Review).where(Review.booking_id == booking_id)
        )
        return result.scalar_one_or_none()

    async def create(self, review: Review) -> Review:
        """Create a new review."""
        self._session.add(review)
        await self._session.flush()
        await self._session.refresh(review)
        return review

    async def get_all(self, status: str | None = None) -> Sequence[Review]:
        """Get reviews, newest first, optionally by moderation status."""
        query = select(Review).order_by(Review.created_at.desc(), Review.id.desc())
        if status is not None:
            query = query.where(Review.status == status)
        result = await self._session.execute(query)
        return result.scalars().all()

    async def get_by_id(self, review_id: int) -> Review | None:
        """Get a review by ID."""
        return await self._session.get(Review, review_id)

    async def update(self, review: Review) -> Review:
        """Flush pending changes to a review."""
        await self._session.flush()
        await self._session.refresh(review)
        return review
