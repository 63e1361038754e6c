# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Idempotent seeding of defaults, utility types, sample mappings and alerts.

Every seeder creates missing rows only and never overwrites what an admin
has changed, so the whole set can run on every deploy.
"""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.alert_rule import AlertRule
from src.models.utility_account import UtilityAccount
from src.repositories.alert_rule_repository import AlertRuleRepository
from src.repositories.utility_account_repository import UtilityAccountRepository
from src.repositories.utility_type_repository import UtilityTypeRepository
from src.services.settings_store import SettingsStore
from src.services.utility_type_service import UtilityTypeService

logger = logging.getLogger(__name__)

SYNC_RESOURCES = [
    "properties",
    "units",
    "people",
    "leases",
    "ledger_transactions",
    "work_orders",
]

# category -> [(key, value, description)]
DEFAULT_SETTINGS: dict[str, list[tuple[str, Any, str]]] = {
    "sync": [
        ("full_sync_time", "02:00", "Time of day to run full sync (HH:MM format)"),
        ("incremental_sync_interval", 15, "Minutes between incremental syncs"),
        ("batch_size", 100, "Number of records to fetch per API request"),
        ("incremental_days", 7, "Number of days to look back for incremental sync"),
        ("full_sync_lookback_days", 365, "Number of days to look back for full sync"),
        ("resources", SYNC_RESOURCES, "Resource types to sync from AppFolio"),
    ],
    "business_hours": [
        ("enabled", True, "Enable business hours sync frequency adjustment"),
        ("timezone", "America/Los_Angeles", "Timezone for business hours calculation"),
        ("start_hour", 9, "Business hours start (0-23)"),
        ("end_hour", 17, "Business hours end (0-23)"),
        ("weekdays_only", True, "Only treat Mon-Fri as business days"),
        ("business_hours_interval", 15, "Sync interval during business hours (minutes)"),
        ("off_hours_interval", 60, "Sync interval during off-hours (minutes)"),
    ],
    "rate_limit": [
        ("requests_per_minute", 60, "Maximum API requests per minute"),
        ("max_retries", 5, "Maximum retry attempts for failed requests"),
        ("initial_backoff_seconds", 1, "Initial backoff time in seconds"),
        ("backoff_multiplier", 2, "Multiplier for exponential backoff"),
        ("max_backoff_seconds", 60, "Maximum backoff time in seconds"),
    ],
    "alerts": [
        ("failure_threshold", 3, "Number of consecutive failures before alerting"),
        ("cooldown_minutes", 60, "Minimum minutes between alert emails"),
        ("recipients", None, "Override alert recipients (null = all users)"),
    ],
    "features": [
        ("notifications", True, "Enable email notifications for alerts"),
        ("incremental_sync", True, "Enable incremental sync mode"),
        ("dashboard_refresh", True, "Enable auto-refresh on dashboard"),
    ],
    "appfolio": [
        ("api_base_url", "https://api.appfolio.com", "AppFolio API base URL"),
    ],
}

# Example mappings; real GL numbers vary by company
SAMPLE_UTILITY_ACCOUNTS = [
    ("6210", "Water Expense", "water"),
    ("6211", "Water & Sewer", "water"),
    ("6220", "Electric Expense", "electric"),
    ("6221", "PG&E", "electric"),
    ("6230", "Gas Expense", "gas"),
    ("6240", "Garbage Expense", "garbage"),
    ("6241", "Trash Removal", "garbage"),
    ("6250", "Sewer Expense", "sewer"),
]

DEFAULT_ALERT_RECIPIENTS = ["admin@pmpulse.local"]

# (name, metric, operator, threshold)
SAMPLE_ALERT_RULES = [
    ("High Vacancy Alert", "vacancy_count", "gt", Decimal("5")),
    ("High Delinquency Alert", "delinquency_amount", "gt", Decimal("10000")),
    ("Work Order Aging Alert", "work_order_days_open", "gt", Decimal("7")),
    ("Low Occupancy Alert", "occupancy_rate", "lt", Decimal("90")),
]


async def seed_settings(store: SettingsStore) -> int:
    """Seed default settings without touching existing values.

    Args:
        store: Settings store bound to the seeding session.

    Returns:
        Number of settings created.
    """
    created = 0
    for category, entries in DEFAULT_SETTINGS.items():
        for key, value, description in entries:
            if await store.seed_default(category, key, value, description=description):
                created += 1
    logger.info("Seeded %d default settings", created)
    return created


async def seed_utility_types(session: AsyncSession) -> int:
    """Create missing built-in utility types.

    Returns:
        Number of types created.
    """
    created = await UtilityTypeService(session).ensure_system_types()
    logger.info("Seeded %d utility types", created)
    return created


async def seed_utility_accounts(session: AsyncSession) -> int:
    """Create the sample GL account mappings that are missing.

    Accounts whose utility type does not exist are skipped.

    Returns:
        Number of mappings created.
    """
    account_repo = UtilityAccountRepository(session)
    type_repo = UtilityTypeRepository(session)

    created = 0
    for number, name, type_key in SAMPLE_UTILITY_ACCOUNTS:
        if await account_repo.get_by_gl_number(number) is not None:
            continue
        utility_type = await type_repo.get_by_key(type_key)
        if utility_type is None:
            logger.warning("Utility type %s missing, not seeding GL %s", type_key, number)
            continue
        try:
            await account_repo.create(
                UtilityAccount(
                    gl_account_number=number,
                    gl_account_name=name,
                    utility_type_id=utility_type.id,
                    is_active=True,
                )
            )
        except IntegrityError:
            logger.debug("GL account %s seeded concurrently", number)
            continue
        created += 1

    logger.info("Seeded %d utility account mappings", created)
    return created


async def seed_alert_rules(session: AsyncSession) -> int:
    """Create the example alert rules whose names are not taken.

    Returns:
        Number of rules created.
    """
    repo = AlertRuleRepository(session)
    created = 0
    for name, metric, operator, threshold in SAMPLE_ALERT_RULES:
        if await repo.get_by_name(name) is not None:
            continue
        try:
            await repo.create(
                AlertRule(
                    name=name,
                    metric=metric,
                    operator=operator,
                    threshold=threshold,
                    enabled=True,
                    recipients=list(DEFAULT_ALERT_RECIPIENTS),
                )
            )
        except IntegrityError:
            logger.debug("Alert rule '%s' seeded concurrently", name)
            continue
        created += 1

    logger.info("Seeded %d alert rules", created)
    return created


async def run_all(session: AsyncSession) -> dict[str, int]:
    """Run every seeder in dependency order.

    Args:
        session: Async database session.

    Returns:
        Created counts keyed by seeder.
    """
    counts = {
        "settings": await seed_settings(SettingsStore(session)),
        "utility_types": await seed_utility_types(session),
        "utility_accounts": await seed_utility_accounts(session),
        "alert_rules": await seed_alert_rules(session),
    }
    logger.info("Seeding complete: %s", counts)
    return counts
