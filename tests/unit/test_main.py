# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for the application entry point."""

from unittest.mock import patch

from hotel_pms.config import Settings
from hotel_pms.main import run


class TestRun:
    """Tests for the uvicorn runner."""

    def test_serves_on_configured_address(self):
        """Test the server binds to the configured host and port."""
        settings = Settings(host="127.0.0.1", port=9001)
        with (
            patch("hotel_pms.main.get_settings", return_value=settings),
            patch("hotel_pms.main.uvicorn.run") as uvicorn_run,
        ):
            run()

        uvicorn_run.assert_called_once_with(
            "hotel_pms.main:app", host="127.0.0.1", port=9001, log_config=None
        )
