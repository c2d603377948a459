# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Integration tests for staff, settings, rooms and channel administration."""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from hotel_pms.services.channel_sync_service import ICalFeedClient
from icalendar import Calendar


def _as(user_id):
    return {"X-Staff-User-Id": user_id}


class TestStaffAccess:
    """Tests for staff identity and role checks."""

    @pytest.mark.asyncio
    async def test_unknown_user(self, client):
        """Test identities without a staff record are refused."""
        response = await client.get("/api/bookings", headers=_as("stranger"))
        assert response.status_code == 403
        assert response.json()["detail"] == "Not a staff member"

    @pytest.mark.asyncio
    async def test_staff_cannot_read_settings(self, client, make_staff):
        """Test the staff role has no settings access."""
        await make_staff("staff")
        response = await client.get("/api/settings", headers=_as("staff-user"))
        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient permissions to read settings"

    @pytest.mark.asyncio
    async def test_me(self, client, make_staff):
        """Test the caller's own role summary."""
        member = await make_staff("manager")
        response = await client.get("/api/staff/me", headers=_as("manager-user"))
        assert response.status_code == 200
        body = response.json()
        assert body["staff_id"] == member.id
        assert body["role_display"] == "Manager"
        assert body["role_level"] == 2

    @pytest.mark.asyncio
    async def test_me_standalone(self, client):
        """Test standalone requests act as the owner."""
        response = await client.get("/api/staff/me")
        assert response.json()["user_id"] == "standalone"
        assert response.json()["role"] == "owner"


class TestStaffManagement:
    """Tests for /api/staff."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, client, make_staff):
        """Test an admin adds a manager."""
        await make_staff("admin")
        created = await client.post(
            "/api/staff",
            headers=_as("admin-user"),
            json={
                "user_id": "kofi",
                "name": "Kofi Boateng",
                "email": "kofi@hotel.example",
                "role": "manager",
            },
        )
        assert created.status_code == 201
        assert created.json()["role_display"] == "Manager"

        listed = await client.get("/api/staff", headers=_as("admin-user"))
        assert {m["user_id"] for m in listed.json()} == {"admin-user", "kofi"}

    @pytest.mark.asyncio
    async def test_admin_cannot_assign_owner(self, client, make_staff):
        """Test admins cannot create owners."""
        await make_staff("admin")
        response = await client.post(
            "/api/staff",
            headers=_as("admin-user"),
            json={
                "user_id": "kofi",
                "name": "Kofi Boateng",
                "email": "kofi@hotel.example",
                "role": "owner",
            },
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Cannot assign role: owner"

    @pytest.mark.asyncio
    async def test_duplicate(self, client, make_staff):
        """Test user ids are unique."""
        await make_staff("staff")
        response = await client.post(
            "/api/staff",
            json={
                "user_id": "staff-user",
                "name": "Someone Else",
                "email": "else@hotel.example",
            },
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_admin_cannot_edit_owner(self, client, make_staff):
        """Test admins cannot manage owners."""
        await make_staff("admin")
        owner = await make_staff("owner")
        response = await client.patch(
            f"/api/staff/{owner.id}",
            headers=_as("admin-user"),
            json={"name": "Renamed"},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_remove(self, client, make_staff):
        """Test members are removed, but never by themselves."""
        admin = await make_staff("admin")
        member = await make_staff("staff")

        own = await client.delete(f"/api/staff/{admin.id}", headers=_as("admin-user"))
        assert own.status_code == 400
        assert own.json()["detail"] == "You cannot remove your own account"

        removed = await client.delete(
            f"/api/staff/{member.id}", headers=_as("admin-user")
        )
        assert removed.status_code == 204

        missing = await client.delete(
            f"/api/staff/{member.id}", headers=_as("admin-user")
        )
        assert missing.status_code == 404


class TestSettings:
    """Tests for /api/settings."""

    @pytest.mark.asyncio
    async def test_read_and_update(self, client):
        """Test stored identity overrides the defaults."""
        response = await client.get("/api/settings")
        assert response.status_code == 200
        assert response.json()["sync_interval_minutes"] == 30
        assert response.json()["ical_base_url"] == "http://test"

        updated = await client.put(
            "/api/settings",
            json={"hotel_name": "Coconut Grove", "phone": "0302000000"},
        )
        assert updated.status_code == 200
        assert updated.json()["hotel_name"] == "Coconut Grove"

        again = await client.get("/api/settings")
        assert again.json()["phone"] == "0302000000"

    @pytest.mark.asyncio
    async def test_sync_interval_without_scheduler(self, client):
        """Test the interval is stored for the next scheduler start."""
        response = await client.put(
            "/api/settings/sync-interval", json={"interval_minutes": 45}
        )
        assert response.status_code == 200
        assert response.json()["message"] == (
            "Sync interval saved as 45 minutes (will apply on next scheduler start)"
        )

        settings = await client.get("/api/settings")
        assert settings.json()["sync_interval_minutes"] == 45

    @pytest.mark.asyncio
    async def test_sync_interval_range(self, client):
        """Test out of range intervals fail validation."""
        response = await client.put(
            "/api/settings/sync-interval", json={"interval_minutes": 0}
        )
        assert response.status_code == 422


class TestRoomAdministration:
    """Tests for room type and room management."""

    @pytest.mark.asyncio
    async def test_room_type_lifecycle(self, client):
        """Test room types are created, updated and removed."""
        created = await client.post(
            "/api/room-types",
            json={"name": "Family", "base_price": "750.00", "max_occupancy": 5},
        )
        assert created.status_code == 201
        room_type_id = created.json()["id"]
        assert created.json()["room_count"] == 0

        duplicate = await client.post("/api/room-types", json={"name": "Family"})
        assert duplicate.status_code == 409

        updated = await client.patch(
            f"/api/room-types/{room_type_id}", json={"base_price": "800.00"}
        )
        assert Decimal(updated.json()["base_price"]) == Decimal("800.00")

        deleted = await client.delete(f"/api/room-types/{room_type_id}")
        assert deleted.status_code == 204

    @pytest.mark.asyncio
    async def test_room_type_requires_name(self, client):
        """Test a name is required."""
        response = await client.post("/api/room-types", json={"base_price": "10"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Room type name is required"

    @pytest.mark.asyncio
    async def test_room_type_with_rooms(self, client, inventory):
        """Test types that still have rooms stay."""
        response = await client.delete(f"/api/room-types/{inventory.deluxe.id}")
        assert response.status_code == 400
        assert response.json()["detail"] == "Room type still has rooms"

    @pytest.mark.asyncio
    async def test_room_lifecycle(self, client, inventory):
        """Test rooms are created, renumbered and removed."""
        created = await client.post(
            "/api/rooms",
            json={"room_number": "103", "room_type_id": inventory.deluxe.id},
        )
        assert created.status_code == 201
        room_id = created.json()["id"]
        assert created.json()["room_type_name"] == "Deluxe"

        duplicate = await client.post(
            "/api/rooms",
            json={"room_number": "103", "room_type_id": inventory.deluxe.id},
        )
        assert duplicate.status_code == 409
        assert duplicate.json()["detail"] == "Room number already in use"

        updated = await client.patch(
            f"/api/rooms/{room_id}", json={"notes": "Sea view"}
        )
        assert updated.json()["notes"] == "Sea view"

        deleted = await client.delete(f"/api/rooms/{room_id}")
        assert deleted.status_code == 204
        assert (await client.get(f"/api/rooms/{room_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_room_with_bookings(
        self, client, inventory, guest, make_booking, arrival
    ):
        """Test rooms with bookings cannot be removed."""
        room = inventory.rooms["101"]
        await make_booking(room, guest, arrival, arrival + timedelta(days=1))
        response = await client.delete(f"/api/rooms/{room.id}")
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_room_status(self, client, inventory, make_staff):
        """Test housekeeping staff may change a room status."""
        await make_staff("staff")
        room = inventory.rooms["102"]

        response = await client.patch(
            f"/api/rooms/{room.id}/status",
            headers=_as("staff-user"),
            json={"status": "maintenance"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "maintenance"

        invalid = await client.patch(
            f"/api/rooms/{room.id}/status", json={"status": "haunted"}
        )
        assert invalid.status_code == 422

        listed = await client.get("/api/rooms", params={"status": "maintenance"})
        assert [r["room_number"] for r in listed.json()] == ["102"]

    @pytest.mark.asyncio
    async def test_staff_cannot_create_rooms(self, client, inventory, make_staff):
        """Test the staff role cannot change the room inventory."""
        await make_staff("staff")
        response = await client.post(
            "/api/rooms",
            headers=_as("staff-user"),
            json={"room_number": "104", "room_type_id": inventory.deluxe.id},
        )
        assert response.status_code == 403


class TestChannelAdministration:
    """Tests for /api/channels."""

    @pytest.mark.asyncio
    async def test_mapping_flow(self, client, inventory, arrival):
        """Test a channel is enabled, mapped and synced."""
        toggled = await client.put(
            "/api/channels/connections/airbnb/toggle", json={"is_active": True}
        )
        assert toggled.status_code == 200
        connection_id = toggled.json()["id"]
        assert toggled.json()["channel_name"] == "Airbnb"

        created = await client.post(
            "/api/channels/mappings",
            json={
                "connection_id": connection_id,
                "room_type_id": inventory.suite.id,
                "external_listing_name": "Suite by the sea",
                "import_url": "https://www.airbnb.com/calendar/ical/1.ics",
                "export_token": "suite-airbnb",
            },
        )
        assert created.status_code == 201
        mapping = created.json()
        assert mapping["has_import_url"] is True
        assert "import_url" not in mapping
        assert mapping["export_url"] == "http://test/ical/suite-airbnb.ics"

        start = arrival
        feed = (
            "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//Airbnb//EN\r\n"
            "BEGIN:VEVENT\r\nUID:abc@airbnb.com\r\n"
            f"DTSTART;VALUE=DATE:{start:%Y%m%d}\r\n"
            f"DTEND;VALUE=DATE:{start + timedelta(days=2):%Y%m%d}\r\n"
            "SUMMARY:Reserved\r\nEND:VEVENT\r\nEND:VCALENDAR\r\n"
        )
        with patch.object(ICalFeedClient, "fetch", AsyncMock(return_value=feed)):
            synced = await client.post("/api/channels/sync")
        assert synced.status_code == 200
        results = synced.json()["results"]
        assert results[0]["status"] == "success"
        assert results[0]["events"] == 1

        stays = await client.get(
            f"/api/channels/mappings/{mapping['id']}/external-bookings"
        )
        assert [s["external_id"] for s in stays.json()] == ["abc@airbnb.com"]

        # The only suite is now held by the imported stay
        availability = await client.get(
            "/api/public/availability",
            params={
                "checkIn": start.isoformat(),
                "checkOut": (start + timedelta(days=1)).isoformat(),
            },
        )
        data = {item["name"]: item for item in availability.json()["data"]}
        assert data["Suite"]["available_count"] == 0

    @pytest.mark.asyncio
    async def test_unsupported_channel(self, client):
        """Test unknown channels answer 400."""
        response = await client.put(
            "/api/channels/connections/myspace/toggle", json={"is_active": True}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_mapping_unknown_room_type(self, client):
        """Test mappings need an existing room type."""
        toggled = await client.put(
            "/api/channels/connections/expedia/toggle", json={"is_active": True}
        )
        response = await client.post(
            "/api/channels/mappings",
            json={"connection_id": toggled.json()["id"], "room_type_id": 999},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_and_delete_mapping(self, client, inventory, make_mapping):
        """Test mappings are renamed and removed."""
        mapping = await make_mapping(inventory.deluxe)

        updated = await client.patch(
            f"/api/channels/mappings/{mapping.id}",
            json={"external_listing_name": "Garden room"},
        )
        assert updated.json()["external_listing_name"] == "Garden room"
        assert updated.json()["has_import_url"] is False

        deleted = await client.delete(f"/api/channels/mappings/{mapping.id}")
        assert deleted.status_code == 204

        missing = await client.get(
            f"/api/channels/mappings/{mapping.id}/external-bookings"
        )
        assert missing.status_code == 404


class TestICalFeed:
    """Tests for the published busy-block feed."""

    @pytest.mark.asyncio
    async def test_sold_out_nights_are_closed(
        self, client, inventory, guest, make_booking, make_mapping, arrival
    ):
        """Test nights with every room taken are published as closed."""
        mapping = await make_mapping(inventory.deluxe, export_token="deluxe-feed")
        end = arrival + timedelta(days=2)
        await make_booking(inventory.rooms["101"], guest, arrival, end)
        await make_booking(
            inventory.rooms["102"], guest, arrival, arrival + timedelta(days=1)
        )

        response = await client.get(f"/ical/{mapping.export_token}.ics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/calendar")
        cal = Calendar.from_ical(response.text)
        events = list(cal.walk("VEVENT"))
        assert len(events) == 1
        assert events[0].decoded("dtstart") == arrival
        assert events[0].decoded("dtend") == arrival + timedelta(days=1)
        assert "Ama" not in response.text

    @pytest.mark.asyncio
    async def test_manual_sync_refreshes_feed(
        self, client, inventory, make_mapping, arrival
    ):
        """Test stays imported by a manual sync close other channels' feeds."""
        airbnb = await make_mapping(inventory.deluxe, "airbnb", "deluxe-airbnb")
        await make_mapping(
            inventory.deluxe,
            "booking",
            "deluxe-booking",
            import_url="https://admin.booking.com/ical/deluxe.ics",
        )
        end = arrival + timedelta(days=2)
        events = "".join(
            f"BEGIN:VEVENT\r\nUID:{uid}@booking.com\r\n"
            f"DTSTART;VALUE=DATE:{arrival:%Y%m%d}\r\n"
            f"DTEND;VALUE=DATE:{end:%Y%m%d}\r\n"
            "SUMMARY:CLOSED - Not available\r\nEND:VEVENT\r\n"
            for uid in ("b1", "b2")
        )
        feed = (
            "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//Booking.com//EN\r\n"
            f"{events}END:VCALENDAR\r\n"
        )

        before = await client.get(f"/ical/{airbnb.export_token}.ics")
        assert list(Calendar.from_ical(before.text).walk("VEVENT")) == []

        with patch.object(ICalFeedClient, "fetch", AsyncMock(return_value=feed)):
            synced = await client.post("/api/channels/sync")
        assert synced.json()["results"][0]["events"] == 2

        after = await client.get(f"/ical/{airbnb.export_token}.ics")
        closed = list(Calendar.from_ical(after.text).walk("VEVENT"))
        assert len(closed) == 1
        assert closed[0].decoded("dtstart") == arrival
        assert closed[0].decoded("dtend") == end

    @pytest.mark.asyncio
    async def test_unknown_token(self, client):
        """Test unknown feeds answer 404."""
        response = await client.get("/ical/nope.ics")
        assert response.status_code == 404
        assert response.json()["detail"] == "Calendar not found"


class TestMessages:
    """Tests for /api/messages."""

    @pytest.mark.asyncio
    async def test_email_not_configured(self, client):
        """Test sending email without an API key answers 500."""
        response = await client.post(
            "/api/messages/email",
            json={"to": "ama@example.com", "subject": "Hi", "html": "<p>Hi</p>"},
        )
        assert response.status_code == 500

    @pytest.mark.asyncio
    async def test_sms_not_configured(self, client):
        """Test sending SMS without an API key answers 500."""
        response = await client.post(
            "/api/messages/sms", json={"to": "0551234567", "message": "Hello"}
        )
        assert response.status_code == 500
        assert response.json()["detail"] == "SMS service not configured"
