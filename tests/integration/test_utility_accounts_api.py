# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Integration tests for GL account mapping API endpoints."""

import pytest
from src.services.expense_service import ExpenseService
from src.services.seeders import seed_utility_types
from src.services.utility_type_service import UtilityTypeService


@pytest.fixture
async def type_ids(session_factory) -> dict[str, int]:
    """Commit the built-in utility types and return their IDs by key."""
    async with session_factory() as session:
        await seed_utility_types(session)
        await session.commit()
        return {t.key: t.id for t in await UtilityTypeService(session).list()}


async def _ingest(session_factory, payloads):
    async with session_factory() as session:
        await ExpenseService(session).ingest(payloads)
        await session.commit()


def _expense(expense_id, gl_account):
    return {
        "id": expense_id,
        "property_id": "prop-1",
        "gl_account_number": gl_account,
        "amount": "10.00",
        "bill_date": "2026-09-01",
    }


class TestMappings:
    """Tests for mapping CRUD."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, client, type_ids):
        """Test creating a mapping and listing it."""
        response = await client.post(
            "/api/utility-accounts",
            json={
                "gl_account_number": "6210",
                "gl_account_name": "Water Expense",
                "utility_type_id": type_ids["water"],
            },
        )

        assert response.status_code == 201
        assert response.json()["utility_type_key"] == "water"

        response = await client.get("/api/utility-accounts")
        data = response.json()
        assert data["total"] == 1
        assert data["accounts"][0]["gl_account_number"] == "6210"
        assert data["accounts"][0]["utility_type_label"] == "Water"

    @pytest.mark.asyncio
    async def test_duplicate_mapping(self, client, type_ids):
        """Test mapping the same GL account twice returns 409."""
        body = {
            "gl_account_number": "6210",
            "gl_account_name": "Water Expense",
            "utility_type_id": type_ids["water"],
        }
        await client.post("/api/utility-accounts", json=body)

        response = await client.post(
            "/api/utility-accounts", json=body | {"utility_type_id": type_ids["gas"]}
        )

        assert response.status_code == 409
        assert response.json()["type"] == "duplicate_account"
        accounts = (await client.get("/api/utility-accounts")).json()["accounts"]
        assert accounts[0]["utility_type_key"] == "water"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client, type_ids):
        """Test editing and deleting a mapping."""
        created = await client.post(
            "/api/utility-accounts",
            json={
                "gl_account_number": "6211",
                "gl_account_name": "Water & Sewer",
                "utility_type_id": type_ids["water"],
            },
        )
        account_id = created.json()["id"]

        response = await client.patch(
            f"/api/utility-accounts/{account_id}",
            json={"utility_type_id": type_ids["sewer"], "is_active": False},
        )

        assert response.status_code == 200
        assert response.json()["utility_type_key"] == "sewer"
        assert response.json()["is_active"] is False

        response = await client.delete(f"/api/utility-accounts/{account_id}")
        assert response.status_code == 204
        response = await client.delete(f"/api/utility-accounts/{account_id}")
        assert response.status_code == 404


class TestSuggestions:
    """Tests for GET /api/utility-accounts/suggestions."""

    @pytest.mark.asyncio
    async def test_suggestion_cleared_by_mapping(self, client, type_ids, session_factory):
        """Test a suggested GL account disappears once mapped."""
        await _ingest(
            session_factory,
            [_expense("e-1", "6210"), _expense("e-2", "6210"), _expense("e-3", "6500")],
        )

        response = await client.get("/api/utility-accounts/suggestions")
        assert response.status_code == 200
        assert response.json() == [
            {"gl_account_number": "6210", "occurrences": 2},
            {"gl_account_number": "6500", "occurrences": 1},
        ]

        await client.post(
            "/api/utility-accounts",
            json={
                "gl_account_number": "6210",
                "gl_account_name": "Water Expense",
                "utility_type_id": type_ids["water"],
            },
        )

        response = await client.get("/api/utility-accounts/suggestions", params={"days": 30})
        assert response.json() == [{"gl_account_number": "6500", "occurrences": 1}]

    @pytest.mark.asyncio
    async def test_invalid_window(self, client):
        """Test a non-positive window returns 422."""
        response = await client.get("/api/utility-accounts/suggestions", params={"days": 0})

        assert response.status_code == 422
        assert response.json()["field"] == "days"


class TestReprocess:
    """Tests for POST /api/utility-accounts/reprocess."""

    @pytest.mark.asyncio
    async def test_reprocess_job(self, client, type_ids, session_factory, job_runner):
        """Test a reprocess job applies a mapping made after ingest."""
        await _ingest(session_factory, [_expense("e-1", "6220")])
        await client.post(
            "/api/utility-accounts",
            json={
                "gl_account_number": "6220",
                "gl_account_name": "Electric Expense",
                "utility_type_id": type_ids["electric"],
            },
        )

        response = await client.post("/api/utility-accounts/reprocess")

        assert response.status_code == 202
        job = await job_runner.wait_for(response.json()["job_id"])
        assert job["status"] == "succeeded"
        assert job["result"]["reclassified"] == 1

        async with session_factory() as session:
            snapshot = await ExpenseService(session).classification_snapshot()
        assert snapshot == {"e-1": type_ids["electric"]}

    @pytest.mark.asyncio
    async def test_reprocess_with_range(self, client, job_runner):
        """Test a date-bounded run is accepted."""
        response = await client.post(
            "/api/utility-accounts/reprocess",
            json={"date_from": "2026-01-01", "date_to": "2026-03-31"},
        )

        assert response.status_code == 202
        job = await job_runner.wait_for(response.json()["job_id"])
        assert job["result"]["processed"] == 0

    @pytest.mark.asyncio
    async def test_reprocess_reversed_range(self, client):
        """Test a reversed range is rejected before queueing."""
        response = await client.post(
            "/api/utility-accounts/reprocess",
            json={"date_from": "2026-03-31", "date_to": "2026-01-01"},
        )

        assert response.status_code == 422
        assert response.json()["field"] == "date_from"
