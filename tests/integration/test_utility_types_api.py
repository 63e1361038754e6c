# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Integration tests for utility type API endpoints."""

import pytest
from src.services.expense_service import ExpenseService
from src.services.seeders import seed_utility_types


@pytest.fixture
async def seeded(session_factory):
    """Commit the built-in utility types."""
    async with session_factory() as session:
        await seed_utility_types(session)
        await session.commit()


async def _types_by_key(client) -> dict:
    response = await client.get("/api/utility-types")
    return {row["key"]: row for row in response.json()["utility_types"]}


class TestListAndOptions:
    """Tests for reading the registry."""

    @pytest.mark.asyncio
    async def test_list_with_usage(self, client, seeded):
        """Test built-ins are listed with usage counts."""
        response = await client.get("/api/utility-types")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 6
        water = data["utility_types"][0]
        assert water["key"] == "water"
        assert water["is_system"] is True
        assert water["accounts_count"] == 0
        assert water["can_delete"] is False

    @pytest.mark.asyncio
    async def test_options(self, client):
        """Test the icon and color registries are exposed."""
        response = await client.get("/api/utility-types/options")

        assert response.status_code == 200
        data = response.json()
        assert data["icons"]["BoltIcon"] == "Lightning"
        assert "blue" in data["color_schemes"]


class TestCreateUpdateDelete:
    """Tests for changing the registry."""

    @pytest.mark.asyncio
    async def test_create(self, client, seeded):
        """Test creating a custom type."""
        response = await client.post(
            "/api/utility-types",
            json={"key": "internet", "label": "Internet", "icon": "WifiIcon"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["key"] == "internet"
        assert data["icon"] == "WifiIcon"
        assert data["color_scheme"] == "slate"
        assert data["is_system"] is False

    @pytest.mark.asyncio
    async def test_create_invalid_key(self, client, seeded):
        """Test malformed keys return 422 with the field."""
        response = await client.post(
            "/api/utility-types", json={"key": "Bad Key", "label": "Bad"}
        )

        assert response.status_code == 422
        assert response.json()["type"] == "invalid_key_format"
        assert response.json()["field"] == "key"

    @pytest.mark.asyncio
    async def test_create_duplicate(self, client, seeded):
        """Test duplicate keys return 409."""
        response = await client.post(
            "/api/utility-types", json={"key": "water", "label": "Water 2"}
        )

        assert response.status_code == 409
        assert response.json()["type"] == "duplicate_key"

    @pytest.mark.asyncio
    async def test_rename(self, client, seeded):
        """Test patching the label."""
        water = (await _types_by_key(client))["water"]

        response = await client.patch(
            f"/api/utility-types/{water['id']}", json={"label": "City Water"}
        )

        assert response.status_code == 200
        assert response.json()["label"] == "City Water"
        assert response.json()["key"] == "water"

    @pytest.mark.asyncio
    async def test_delete_custom(self, client, seeded):
        """Test deleting an unused custom type."""
        created = await client.post(
            "/api/utility-types", json={"key": "internet", "label": "Internet"}
        )

        response = await client.delete(f"/api/utility-types/{created.json()['id']}")

        assert response.status_code == 204
        assert "internet" not in await _types_by_key(client)

    @pytest.mark.asyncio
    async def test_delete_system_type(self, client, seeded):
        """Test deleting a built-in type returns 409."""
        water = (await _types_by_key(client))["water"]

        response = await client.delete(f"/api/utility-types/{water['id']}")

        assert response.status_code == 409
        assert response.json()["type"] == "in_use"

    @pytest.mark.asyncio
    async def test_delete_mapped_type(self, client, seeded):
        """Test deleting a custom type with a mapping returns 409."""
        created = await client.post(
            "/api/utility-types", json={"key": "internet", "label": "Internet"}
        )
        type_id = created.json()["id"]
        await client.post(
            "/api/utility-accounts",
            json={
                "gl_account_number": "6290",
                "gl_account_name": "Internet",
                "utility_type_id": type_id,
            },
        )

        response = await client.delete(f"/api/utility-types/{type_id}")

        assert response.status_code == 409


class TestReset:
    """Tests for POST /api/utility-types/reset."""

    @pytest.mark.asyncio
    async def test_reset_job(self, client, seeded, job_runner):
        """Test reset runs as a background job."""
        await client.post("/api/utility-types", json={"key": "internet", "label": "Internet"})

        response = await client.post("/api/utility-types/reset")

        assert response.status_code == 202
        job_id = response.json()["job_id"]
        await job_runner.wait_for(job_id)

        response = await client.get(f"/api/jobs/{job_id}")
        assert response.status_code == 200
        assert response.json()["status"] == "succeeded"
        result = response.json()["result"]
        assert result["removed"] == 1
        assert result["errors"] == 0
        assert "internet" not in await _types_by_key(client)

    @pytest.mark.asyncio
    async def test_unknown_job(self, client):
        """Test polling an unknown job returns 404."""
        response = await client.get("/api/jobs/does-not-exist")

        assert response.status_code == 404


class TestComparison:
    """Tests for GET /api/utility-types/{key}/comparison."""

    @pytest.mark.asyncio
    async def test_comparison_with_formatting(self, client, seeded, session_factory):
        """Test comparison rows carry formatting from stored rules."""
        water = (await _types_by_key(client))["water"]
        await client.post(
            "/api/utility-accounts",
            json={
                "gl_account_number": "6210",
                "gl_account_name": "Water Expense",
                "utility_type_id": water["id"],
            },
        )
        await client.post(
            "/api/formatting-rules",
            json={
                "utility_type_id": water["id"],
                "name": "High Increase",
                "operator": "increase_percent",
                "threshold": 20,
                "color": "#FF0000",
                "priority": 10,
            },
        )
        async with session_factory() as session:
            await ExpenseService(session).ingest(
                [
                    {
                        "id": "e-1",
                        "property_id": "prop-1",
                        "gl_account_number": "6210",
                        "amount": "120.00",
                        "bill_date": "2026-08-10",
                    },
                    {
                        "id": "e-2",
                        "property_id": "prop-1",
                        "gl_account_number": "6210",
                        "amount": "60.00",
                        "bill_date": "2026-09-10",
                    },
                ]
            )
            await session.commit()

        response = await client.get(
            "/api/utility-types/water/comparison", params={"as_of": "2026-09-20"}
        )

        assert response.status_code == 200
        row = response.json()["properties"][0]
        assert row["prev_12_months"] == 10.0
        assert row["current_month"] == 60.0
        assert row["formatting"]["current_month"]["rule_name"] == "High Increase"

    @pytest.mark.asyncio
    async def test_comparison_unknown_type(self, client, seeded):
        """Test an unknown type returns 404."""
        response = await client.get("/api/utility-types/nope/comparison")

        assert response.status_code == 404
