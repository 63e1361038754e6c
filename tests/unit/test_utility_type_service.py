# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for the utility type registry."""

import pytest
from sqlalchemy.exc import IntegrityError
from src.exceptions import (
    DuplicateKeyError,
    InUseError,
    InvalidKeyFormatError,
    NotFoundError,
    ValidationError,
)
from src.models.expense_record import ExpenseRecord
from src.models.utility_type import SYSTEM_TYPES
from src.services.formatting_service import FormattingRuleService
from src.services.utility_account_service import UtilityAccountService
from src.services.utility_type_service import UtilityTypeService


class TestCreate:
    """Tests for creating custom utility types."""

    @pytest.mark.asyncio
    async def test_create_custom_type(self, seeded_session):
        """Test creating a custom type with defaults."""
        service = UtilityTypeService(seeded_session)

        utility_type = await service.create(key="internet", label="Internet")

        assert utility_type.id is not None
        assert utility_type.is_system is False
        assert utility_type.icon == "CubeIcon"
        assert utility_type.color_scheme == "slate"

    @pytest.mark.asyncio
    async def test_custom_types_sort_before_other(self, seeded_session):
        """Test custom types sort after built-ins but before 'other'."""
        service = UtilityTypeService(seeded_session)
        await service.create(key="internet", label="Internet")

        keys = [t.key for t in await service.list()]

        assert keys.index("sewer") < keys.index("internet") < keys.index("other")

    @pytest.mark.asyncio
    async def test_duplicate_key(self, seeded_session):
        """Test an existing key is rejected."""
        service = UtilityTypeService(seeded_session)

        with pytest.raises(DuplicateKeyError):
            await service.create(key="water", label="Another Water")

    @pytest.mark.parametrize("key", ["Internet", "in-ternet", "", "has space", "x" * 51])
    @pytest.mark.asyncio
    async def test_invalid_key(self, seeded_session, key):
        """Test keys outside [a-z0-9_]+ are rejected."""
        service = UtilityTypeService(seeded_session)

        with pytest.raises(InvalidKeyFormatError):
            await service.create(key=key, label="Label")

    @pytest.mark.asyncio
    async def test_unknown_icon(self, seeded_session):
        """Test icons outside the registry are rejected."""
        service = UtilityTypeService(seeded_session)

        with pytest.raises(ValidationError) as exc_info:
            await service.create(key="internet", label="Internet", icon="NopeIcon")
        assert exc_info.value.field == "icon"

    @pytest.mark.asyncio
    async def test_empty_label(self, seeded_session):
        """Test a blank label is rejected."""
        service = UtilityTypeService(seeded_session)

        with pytest.raises(ValidationError):
            await service.create(key="internet", label="   ")


class TestRenameAndUpdate:
    """Tests for changing display attributes."""

    @pytest.mark.asyncio
    async def test_rename_keeps_key(self, seeded_session):
        """Test renaming changes only the label."""
        service = UtilityTypeService(seeded_session)
        water = await service.get_by_key("water")

        renamed = await service.rename(water.id, "City Water")

        assert renamed.label == "City Water"
        assert renamed.key == "water"

    @pytest.mark.asyncio
    async def test_update_icon_and_color(self, seeded_session):
        """Test updating icon and color scheme."""
        service = UtilityTypeService(seeded_session)
        gas = await service.get_by_key("gas")

        updated = await service.update(gas.id, icon="CloudIcon", color_scheme="teal")

        assert updated.icon == "CloudIcon"
        assert updated.color_scheme == "teal"
        assert updated.label == "Gas"

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, seeded_session):
        """Test updating a missing type raises NotFoundError."""
        service = UtilityTypeService(seeded_session)

        with pytest.raises(NotFoundError):
            await service.rename(9999, "Nothing")


class TestDelete:
    """Tests for the deletion guard."""

    @pytest.mark.asyncio
    async def test_delete_unused_custom_type(self, seeded_session):
        """Test a custom type with no usage can be deleted."""
        service = UtilityTypeService(seeded_session)
        internet = await service.create(key="internet", label="Internet")

        rows = {row["key"]: row for row in await service.list_with_usage()}
        assert rows["internet"]["can_delete"] is True
        assert rows["internet"]["accounts_count"] == 0

        await service.delete(internet.id)

        assert await service.get_by_key("internet") is None

    @pytest.mark.asyncio
    async def test_delete_with_mapping_blocked(self, seeded_session):
        """Test a custom type referenced by a mapping cannot be deleted."""
        service = UtilityTypeService(seeded_session)
        internet = await service.create(key="internet", label="Internet")
        await UtilityAccountService(seeded_session).map("6290", "Internet", internet.id)

        rows = {row["key"]: row for row in await service.list_with_usage()}
        assert rows["internet"]["accounts_count"] == 1
        assert rows["internet"]["can_delete"] is False

        with pytest.raises(InUseError):
            await service.delete(internet.id)

    @pytest.mark.asyncio
    async def test_delete_with_classified_expense_blocked(self, seeded_session):
        """Test a custom type tagging an expense cannot be deleted."""
        service = UtilityTypeService(seeded_session)
        internet = await service.create(key="internet", label="Internet")
        seeded_session.add(
            ExpenseRecord(external_expense_id="e-1", utility_type_id=internet.id)
        )
        await seeded_session.flush()

        with pytest.raises(InUseError):
            await service.delete(internet.id)

    @pytest.mark.asyncio
    async def test_delete_system_type_blocked(self, seeded_session):
        """Test built-in types can never be deleted."""
        service = UtilityTypeService(seeded_session)
        water = await service.get_by_key("water")

        rows = {row["key"]: row for row in await service.list_with_usage()}
        assert rows["water"]["can_delete"] is False

        with pytest.raises(InUseError):
            await service.delete(water.id)

    @pytest.mark.asyncio
    async def test_delete_cascades_formatting_rules(self, seeded_session):
        """Test deleting a type removes its formatting rules."""
        service = UtilityTypeService(seeded_session)
        rules = FormattingRuleService(seeded_session)
        internet = await service.create(key="internet", label="Internet")
        await rules.create(internet.id, "High", "increase_percent", 10, "#FF0000")

        await service.delete(internet.id)

        assert await rules.list_rules(internet.id) == []


class TestResetAndSeed:
    """Tests for restoring the registry."""

    @pytest.mark.asyncio
    async def test_ensure_system_types_idempotent(self, async_session):
        """Test seeding built-ins twice creates them once."""
        service = UtilityTypeService(async_session)

        assert await service.ensure_system_types() == len(SYSTEM_TYPES)
        assert await service.ensure_system_types() == 0

    @pytest.mark.asyncio
    async def test_reset_removes_unused_custom_types(self, seeded_session):
        """Test reset drops unused custom types and keeps in-use ones."""
        service = UtilityTypeService(seeded_session)
        await service.create(key="internet", label="Internet")
        cable = await service.create(key="cable", label="Cable")
        await UtilityAccountService(seeded_session).map("6291", "Cable TV", cable.id)

        stats = await service.reset_to_defaults()

        assert stats["removed"] == 1
        assert stats["restored"] == 0
        assert stats["errors"] == 0
        assert await service.get_by_key("internet") is None
        assert await service.get_by_key("cable") is not None

    @pytest.mark.asyncio
    async def test_reset_restores_missing_system_types(self, async_session):
        """Test reset brings back built-ins on an empty registry."""
        service = UtilityTypeService(async_session)

        stats = await service.reset_to_defaults()

        assert stats["restored"] == len(SYSTEM_TYPES)
        keys = {t.key for t in await service.list()}
        assert keys == {key for key, *_ in SYSTEM_TYPES}

    @pytest.mark.asyncio
    async def test_reset_failed_delete_does_not_stop_run(self, seeded_session, monkeypatch):
        """Test a type that cannot be removed is reported and the rest are removed."""
        service = UtilityTypeService(seeded_session)
        await service.create(key="internet", label="Internet")
        await service.create(key="security", label="Security")
        real_delete = service._repo.delete

        async def delete_or_fail(utility_type):
            if utility_type.key == "internet":
                raise IntegrityError("DELETE FROM utility_types", {}, Exception("locked"))
            await real_delete(utility_type)

        monkeypatch.setattr(service._repo, "delete", delete_or_fail)

        stats = await service.reset_to_defaults()

        assert stats["removed"] == 1
        assert stats["errors"] == 1
        assert stats["error_details"][0]["key"] == "internet"
        assert await service.get_by_key("internet") is not None
        assert await service.get_by_key("security") is None

    def test_registries(self):
        """Test icon and color registries include the defaults."""
        assert "CubeIcon" in UtilityTypeService.icon_options()
        assert "slate" in UtilityTypeService.color_scheme_options()
