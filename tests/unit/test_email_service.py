# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for EmailService."""

import base64
from unittest.mock import patch

import pytest
from hotel_pms.services.email_service import (
    EmailService,
    EmailServiceError,
    build_attachments,
    decode_attachment_content,
)

PDF_BYTES = b"%PDF-1.4 invoice"
PDF_BASE64 = base64.b64encode(PDF_BYTES).decode()


class TestAttachments:
    """Tests for attachment decoding."""

    def test_plain_base64(self):
        """Test plain base64 content."""
        assert decode_attachment_content(PDF_BASE64) == PDF_BYTES

    def test_data_url(self):
        """Test data URLs are stripped of their prefix."""
        content = f"data:application/pdf;base64,{PDF_BASE64}"
        assert decode_attachment_content(content) == PDF_BYTES

    def test_invalid_content(self):
        """Test content that is not base64 is refused."""
        with pytest.raises(EmailServiceError, match="base64") as exc_info:
            decode_attachment_content("not base64!")
        assert exc_info.value.status_code == 400

    def test_build_attachments_defaults_content_type(self):
        """Test attachments without a type are sent as binary."""
        built = build_attachments([{"filename": "a.bin", "content": PDF_BASE64}])
        assert built[0]["filename"] == "a.bin"
        assert bytes(built[0]["content"]) == PDF_BYTES
        assert built[0]["content_type"] == "application/octet-stream"


class TestSend:
    """Tests for EmailService.send."""

    @pytest.mark.asyncio
    async def test_send(self):
        """Test a message is handed to Resend."""
        service = EmailService(api_key="re_test", sender="Hotel <desk@hotel.example>")
        with patch(
            "hotel_pms.services.email_service.resend.Emails.send",
            return_value={"id": "msg-123"},
        ) as send:
            message_id = await service.send(
                "ama@example.com",
                "Invoice INV-1",
                "<p>Attached</p>",
                reply_to="desk@hotel.example",
                attachments=[
                    {
                        "filename": "invoice.pdf",
                        "content": PDF_BASE64,
                        "content_type": "application/pdf",
                    }
                ],
            )

        assert message_id == "msg-123"
        params = send.call_args.args[0]
        assert params["from"] == "Hotel <desk@hotel.example>"
        assert params["to"] == ["ama@example.com"]
        assert params["reply_to"] == "desk@hotel.example"
        assert params["attachments"][0]["content_type"] == "application/pdf"

    @pytest.mark.asyncio
    async def test_not_configured(self):
        """Test sending without an API key fails."""
        with pytest.raises(
            EmailServiceError, match="Email service not configured - missing API key"
        ) as exc_info:
            await EmailService().send("ama@example.com", "Hi", "<p>Hi</p>")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_missing_fields(self):
        """Test recipient, subject and body are required."""
        with pytest.raises(EmailServiceError, match="Missing required fields"):
            await EmailService(api_key="re_test").send("ama@example.com", "", "<p/>")
