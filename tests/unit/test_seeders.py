# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for database seeders."""

import pytest
from src.models.utility_type import SYSTEM_TYPES
from src.services import seeders
from src.services.alert_service import AlertService
from src.services.settings_store import SettingsStore
from src.services.utility_account_service import UtilityAccountService


class TestSeeders:
    """Tests for idempotent seeding."""

    @pytest.mark.asyncio
    async def test_run_all_creates_everything(self, async_session):
        """Test the first run creates every default."""
        counts = await seeders.run_all(async_session)

        expected_settings = sum(len(entries) for entries in seeders.DEFAULT_SETTINGS.values())
        assert counts == {
            "settings": expected_settings,
            "utility_types": len(SYSTEM_TYPES),
            "utility_accounts": len(seeders.SAMPLE_UTILITY_ACCOUNTS),
            "alert_rules": len(seeders.SAMPLE_ALERT_RULES),
        }

    @pytest.mark.asyncio
    async def test_run_all_twice_creates_nothing(self, async_session):
        """Test a second run leaves the data alone."""
        await seeders.run_all(async_session)

        counts = await seeders.run_all(async_session)

        assert counts == {
            "settings": 0,
            "utility_types": 0,
            "utility_accounts": 0,
            "alert_rules": 0,
        }

    @pytest.mark.asyncio
    async def test_seeded_values(self, async_session):
        """Test representative seeded values."""
        await seeders.run_all(async_session)
        store = SettingsStore(async_session)

        assert await store.get_list("sync", "resources") == seeders.SYNC_RESOURCES
        assert await store.get_int("alerts", "failure_threshold") == 3
        assert await store.get_bool("features", "notifications") is True

        accounts = {
            a.gl_account_number: a.utility_type.key
            for a in await UtilityAccountService(async_session).list_accounts()
        }
        assert accounts["6210"] == "water"
        assert accounts["6221"] == "electric"

        rules = {rule.name: rule for rule in await AlertService(async_session).list_rules()}
        assert rules["Low Occupancy Alert"].operator == "lt"
        assert rules["High Vacancy Alert"].recipients == seeders.DEFAULT_ALERT_RECIPIENTS

    @pytest.mark.asyncio
    async def test_reseed_keeps_admin_changes(self, async_session):
        """Test seeding does not overwrite changed values."""
        await seeders.run_all(async_session)
        store = SettingsStore(async_session)
        await store.set("sync", "batch_size", 250)

        await seeders.seed_settings(store)

        assert await store.get_int("sync", "batch_size") == 250
