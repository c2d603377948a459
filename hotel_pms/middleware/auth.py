# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Authentication middleware for the upstream managed auth proxy.

Sign-in itself is handled by the managed auth provider in front of this
service. The proxy forwards the authenticated staff user id in a header,
which this middleware requires on every staff route.
"""

import logging
from collections.abc import Awaitable, Callable

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from hotel_pms.config import get_settings
from hotel_pms.middleware.error_handler import create_error_response

logger = logging.getLogger(__name__)

STAFF_USER_HEADER = "X-Staff-User-Id"

# Paths that don't require authentication
PUBLIC_PATHS = frozenset(
    {
        "/health",
        "/ical",
        "/docs",
        "/redoc",
        "/openapi.json",
    }
)

# Guest-facing and calendar feed prefixes
PUBLIC_PREFIXES = ("/ical/", "/api/public/")


def is_public_path(path: str) -> bool:
    """Check if a path is public (no auth required).

    Args:
        path: Request path to check.

    Returns:
        True if path is public.
    """
    if path in PUBLIC_PATHS:
        return True
    return path.startswith(PUBLIC_PREFIXES)


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Middleware enforcing the staff identity header.

    In standalone mode, requests without the header are let through for
    development.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and enforce authentication.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response, 401 when the staff header is missing.
        """
        settings = get_settings()
        path = request.url.path

        if is_public_path(path):
            return await call_next(request)

        user_id = request.headers.get(STAFF_USER_HEADER)
        if not user_id and settings.standalone_mode:
            logger.debug("Standalone mode: bypassing authentication for %s", path)
            return await call_next(request)

        if not user_id:
            logger.warning("Unauthorized access attempt to %s", path)
            return create_error_response(
                status.HTTP_401_UNAUTHORIZED,
                "Authentication required",
                "unauthorized",
                headers={"WWW-Authenticate": "Bearer"},
            )

        request.state.user_id = user_id
        logger.debug("Authenticated request from user %s to %s", user_id, path)

        return await call_next(request)


def get_current_user(request: Request) -> str | None:
    """Get the current authenticated user ID from request.

    Args:
        request: Current HTTP request.

    Returns:
        User ID string or None if not authenticated.
    """
    return getattr(request.state, "user_id", None)
