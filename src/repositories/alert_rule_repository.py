# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for AlertRule database operations."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.alert_rule import AlertRule


class AlertRuleRepository:
    """Repository for alert rule CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, rule_id: int) -> AlertRule | None:
        """Get a rule by ID."""
        result = await self._session.execute(select(AlertRule).where(AlertRule.id == rule_id))
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> AlertRule | None:
        """Get a rule by its unique name."""
        result = await self._session.execute(select(AlertRule).where(AlertRule.name == name))
        return result.scalar_one_or_none()

    async def get_all(self, enabled_only: bool = False) -> Sequence[AlertRule]:
        """Get rules ordered by name.

        Args:
            enabled_only: Only return enabled rules.
        """
        query = select(AlertRule).order_by(AlertRule.name)
        if enabled_only:
            query = query.where(AlertRule.enabled.is_(True))
        result = await self._session.execute(query)
        return result.scalars().all()

    async def create(self, rule: AlertRule) -> AlertRule:
        """Insert a new rule inside a SAVEPOINT.

        Raises:
            sqlalchemy.exc.IntegrityError: If the name is taken.
        """
        async with self._session.begin_nested():
            self._session.add(rule)
            await self._session.flush()
        await self._session.refresh(rule)
        return rule

    async def update(self, rule: AlertRule) -> AlertRule:
        """Flush changes to an existing rule."""
        await self._session.flush()
        await self._session.refresh(rule)
        return rule

    async def delete(self, rule: AlertRule) -> None:
        """Delete a rule."""
        await self._session.delete(rule)
        await self._session.flush()
