# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Integration tests for settings API endpoints."""

import pytest


class TestWriteSettings:
    """Tests for PUT /api/settings/{category}/{key}."""

    @pytest.mark.asyncio
    async def test_put_and_get(self, client):
        """Test a written setting reads back."""
        response = await client.put(
            "/api/settings/sync/batch_size",
            json={"value": 250, "description": "Records per request"},
        )

        assert response.status_code == 200
        assert response.json()["value"] == 250

        response = await client.get("/api/settings/sync/batch_size")
        assert response.status_code == 200
        data = response.json()
        assert data["value"] == 250
        assert data["encrypted"] is False
        assert data["description"] == "Records per request"

    @pytest.mark.asyncio
    async def test_put_list_value(self, client):
        """Test list values round-trip through the API."""
        await client.put("/api/settings/sync/resources", json={"value": ["units", "leases"]})

        response = await client.get("/api/settings/sync/resources")

        assert response.json()["value"] == ["units", "leases"]

    @pytest.mark.asyncio
    async def test_invalid_value_rejected(self, client):
        """Test schema violations return 422 with the error shape."""
        response = await client.put(
            "/api/settings/sync/resources", json={"value": "properties"}
        )

        assert response.status_code == 422
        data = response.json()
        assert data["type"] == "validation_error"
        assert data["field"] == "value"
        assert "sync.resources" in data["detail"]

        response = await client.get("/api/settings/sync/resources")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_encrypted_setting_hidden(self, client):
        """Test encrypted values are never returned."""
        response = await client.put(
            "/api/settings/appfolio/client_secret", json={"value": "s3cr3t"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["encrypted"] is True
        assert data["value"] is None
        assert data["has_secret"] is True

        response = await client.get("/api/settings/appfolio")
        assert "s3cr3t" not in response.text


class TestReadSettings:
    """Tests for reading categories and keys."""

    @pytest.mark.asyncio
    async def test_get_category(self, client):
        """Test a category lists its settings by key."""
        await client.put("/api/settings/features/notifications", json={"value": True})
        await client.put("/api/settings/features/dashboard_refresh", json={"value": False})

        response = await client.get("/api/settings/features")

        assert response.status_code == 200
        keys = [entry["key"] for entry in response.json()["settings"]]
        assert keys == ["dashboard_refresh", "notifications"]

        response = await client.get("/api/settings")
        assert response.json() == {"categories": ["features"]}

    @pytest.mark.asyncio
    async def test_missing_setting(self, client):
        """Test unknown settings return 404 with the error shape."""
        response = await client.get("/api/settings/sync/nope")

        assert response.status_code == 404
        assert response.json() == {
            "detail": "Setting sync.nope not found",
            "type": "not_found",
            "field": "key",
        }


class TestDeleteSettings:
    """Tests for DELETE /api/settings/{category}/{key}."""

    @pytest.mark.asyncio
    async def test_delete(self, client):
        """Test deleting a setting and deleting it again."""
        await client.put("/api/settings/alerts/cooldown_minutes", json={"value": 30})

        response = await client.delete("/api/settings/alerts/cooldown_minutes")
        assert response.status_code == 204

        response = await client.delete("/api/settings/alerts/cooldown_minutes")
        assert response.status_code == 404
