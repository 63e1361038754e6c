# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for GL account mapping management."""

from datetime import UTC, datetime, timedelta

import pytest
from src.exceptions import DuplicateAccountError, NotFoundError, ValidationError
from src.models.expense_record import ExpenseRecord
from src.services.expense_service import ExpenseService
from src.services.utility_account_service import UtilityAccountService
from src.services.utility_type_service import UtilityTypeService


def _expense(expense_id: str, gl_account: str, amount: str = "10.00") -> dict:
    return {
        "id": expense_id,
        "property_id": "prop-1",
        "gl_account_number": gl_account,
        "amount": amount,
        "bill_date": "2026-09-01",
    }


async def _type_id(session, key: str) -> int:
    utility_type = await UtilityTypeService(session).get_by_key(key)
    return utility_type.id


class TestMap:
    """Tests for creating mappings."""

    @pytest.mark.asyncio
    async def test_map_account(self, seeded_session):
        """Test mapping a GL account to a utility type."""
        service = UtilityAccountService(seeded_session)
        water_id = await _type_id(seeded_session, "water")

        account = await service.map(" 6210 ", "Water Expense", water_id)

        assert account.gl_account_number == "6210"
        assert account.utility_type.key == "water"
        assert account.is_active is True

    @pytest.mark.asyncio
    async def test_duplicate_mapping_rejected(self, seeded_session):
        """Test mapping an already mapped GL account is rejected."""
        service = UtilityAccountService(seeded_session)
        water_id = await _type_id(seeded_session, "water")
        gas_id = await _type_id(seeded_session, "gas")
        await service.map("6210", "Water Expense", water_id)

        with pytest.raises(DuplicateAccountError) as exc_info:
            await service.map("6210", "Gas Expense", gas_id)

        assert exc_info.value.field == "gl_account_number"
        accounts = await service.list_accounts()
        assert len(accounts) == 1
        assert accounts[0].utility_type_id == water_id
        assert accounts[0].gl_account_name == "Water Expense"

    @pytest.mark.asyncio
    async def test_duplicate_mapping_race(self, seeded_session, monkeypatch):
        """Test a unique violation on insert is reported as a duplicate."""
        service = UtilityAccountService(seeded_session)
        water_id = await _type_id(seeded_session, "water")
        gas_id = await _type_id(seeded_session, "gas")
        await service.map("6210", "Water Expense", water_id)

        async def _not_mapped(_number):
            return None

        monkeypatch.setattr(service._repo, "get_by_gl_number", _not_mapped)

        with pytest.raises(DuplicateAccountError) as exc_info:
            await service.map("6210", "Gas Expense", gas_id)

        assert exc_info.value.field == "gl_account_number"
        accounts = await service.list_accounts()
        assert [a.utility_type_id for a in accounts] == [water_id]

    @pytest.mark.asyncio
    async def test_map_unknown_type(self, seeded_session):
        """Test mapping to a missing utility type raises NotFoundError."""
        service = UtilityAccountService(seeded_session)

        with pytest.raises(NotFoundError):
            await service.map("6210", "Water Expense", 9999)

    @pytest.mark.asyncio
    async def test_map_requires_number_and_name(self, seeded_session):
        """Test blank number or name is rejected."""
        service = UtilityAccountService(seeded_session)
        water_id = await _type_id(seeded_session, "water")

        with pytest.raises(ValidationError):
            await service.map("  ", "Water Expense", water_id)
        with pytest.raises(ValidationError):
            await service.map("6210", "", water_id)


class TestUpdateAndDelete:
    """Tests for editing and deleting mappings."""

    @pytest.mark.asyncio
    async def test_update_type_and_active(self, seeded_session):
        """Test changing the type and deactivating a mapping."""
        service = UtilityAccountService(seeded_session)
        water_id = await _type_id(seeded_session, "water")
        sewer_id = await _type_id(seeded_session, "sewer")
        account = await service.map("6211", "Water & Sewer", water_id)

        updated = await service.update(account.id, utility_type_id=sewer_id, is_active=False)

        assert updated.utility_type_id == sewer_id
        assert updated.is_active is False
        assert updated.gl_account_number == "6211"

    @pytest.mark.asyncio
    async def test_edit_does_not_touch_existing_tags(self, seeded_session):
        """Test existing expense tags change only on reprocess."""
        service = UtilityAccountService(seeded_session)
        water_id = await _type_id(seeded_session, "water")
        sewer_id = await _type_id(seeded_session, "sewer")
        account = await service.map("6211", "Water & Sewer", water_id)
        await ExpenseService(seeded_session).ingest([_expense("e-1", "6211")])

        await service.update(account.id, utility_type_id=sewer_id)
        snapshot = await ExpenseService(seeded_session).classification_snapshot()
        assert snapshot == {"e-1": water_id}

        await service.reprocess()
        snapshot = await ExpenseService(seeded_session).classification_snapshot()
        assert snapshot == {"e-1": sewer_id}

    @pytest.mark.asyncio
    async def test_delete_mapping(self, seeded_session):
        """Test deleting a mapping."""
        service = UtilityAccountService(seeded_session)
        water_id = await _type_id(seeded_session, "water")
        account = await service.map("6210", "Water Expense", water_id)
        account_id = account.id

        await service.delete(account_id)

        assert await service.list_accounts() == []
        with pytest.raises(NotFoundError):
            await service.get(account_id)


class TestSuggestUnmapped:
    """Tests for unmapped GL account suggestions."""

    @pytest.mark.asyncio
    async def test_map_suggested_account(self, seeded_session, sample_expense_payload):
        """Test a suggested GL account disappears once it is mapped."""
        service = UtilityAccountService(seeded_session)
        second = dict(sample_expense_payload, id="bill-1002")
        await ExpenseService(seeded_session).ingest([sample_expense_payload, second])

        suggestions = await service.suggest_unmapped()
        assert ("6210", 2) in suggestions

        water_id = await _type_id(seeded_session, "water")
        await service.map("6210", "Water Expense", water_id)

        suggestions = await service.suggest_unmapped()
        assert "6210" not in [number for number, _ in suggestions]

    @pytest.mark.asyncio
    async def test_ordering_by_count_then_number(self, seeded_session):
        """Test suggestions sort by count descending, ties by number."""
        service = UtilityAccountService(seeded_session)
        await ExpenseService(seeded_session).ingest(
            [
                _expense("e-1", "6300"),
                _expense("e-2", "6300"),
                _expense("e-3", "6100"),
                _expense("e-4", "6100"),
                _expense("e-5", "6500"),
            ]
        )

        suggestions = await service.suggest_unmapped()

        assert suggestions == [("6100", 2), ("6300", 2), ("6500", 1)]

    @pytest.mark.asyncio
    async def test_inactive_mapping_still_suggested(self, seeded_session):
        """Test accounts with only an inactive mapping are suggested."""
        service = UtilityAccountService(seeded_session)
        water_id = await _type_id(seeded_session, "water")
        await service.map("6210", "Water Expense", water_id, is_active=False)
        await ExpenseService(seeded_session).ingest([_expense("e-1", "6210")])

        assert await service.suggest_unmapped() == [("6210", 1)]

    @pytest.mark.asyncio
    async def test_window_excludes_old_records(self, seeded_session):
        """Test records pulled before the window are not counted."""
        service = UtilityAccountService(seeded_session)
        seeded_session.add(
            ExpenseRecord(
                external_expense_id="old-1",
                gl_account_number="6400",
                pulled_at=datetime.now(UTC) - timedelta(days=120),
            )
        )
        await seeded_session.flush()

        assert await service.suggest_unmapped(window_days=90) == []
        assert await service.suggest_unmapped(window_days=365) == [("6400", 1)]

    @pytest.mark.asyncio
    async def test_invalid_window(self, seeded_session):
        """Test a non-positive window is rejected."""
        with pytest.raises(ValidationError):
            await UtilityAccountService(seeded_session).suggest_unmapped(window_days=0)
