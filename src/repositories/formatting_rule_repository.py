# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for UtilityFormattingRule database operations."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.formatting_rule import UtilityFormattingRule
from src.models.utility_type import UtilityType


class FormattingRuleRepository:
    """Repository for formatting rule CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, rule_id: int) -> UtilityFormattingRule | None:
        """Get a rule by ID."""
        result = await self._session.execute(
            select(UtilityFormattingRule).where(UtilityFormattingRule.id == rule_id)
        )
        return result.scalar_one_or_none()

    async def get_all(self, utility_type_id: int | None = None) -> Sequence[UtilityFormattingRule]:
        """Get rules, optionally for one utility type.

        Args:
            utility_type_id: Restrict to this utility type.

        Returns:
            Rules ordered by priority descending, then creation order.
        """
        query = select(UtilityFormattingRule).order_by(
            UtilityFormattingRule.priority.desc(), UtilityFormattingRule.id
        )
        if utility_type_id is not None:
            query = query.where(UtilityFormattingRule.utility_type_id == utility_type_id)
        result = await self._session.execute(query)
        return result.scalars().all()

    async def get_enabled_for_type_key(self, type_key: str) -> Sequence[UtilityFormattingRule]:
        """Get enabled rules for a utility type key in evaluation order.

        Args:
            type_key: Utility type key such as 'water'.

        Returns:
            Enabled rules ordered by priority descending, then creation order.
        """
        result = await self._session.execute(
            select(UtilityFormattingRule)
            .join(UtilityType, UtilityFormattingRule.utility_type_id == UtilityType.id)
            .where(
                UtilityType.key == type_key,
                UtilityFormattingRule.enabled.is_(True),
            )
            .order_by(UtilityFormattingRule.priority.desc(), UtilityFormattingRule.id)
        )
        return result.scalars().all()

    async def create(self, rule: UtilityFormattingRule) -> UtilityFormattingRule:
        """Insert a new rule."""
        self._session.add(rule)
        await self._session.flush()
        await self._session.refresh(rule)
        return rule

    async def update(self, rule: UtilityFormattingRule) -> UtilityFormattingRule:
        """Flush changes to an existing rule."""
        await self._session.flush()
        await self._session.refresh(rule)
        return rule

    async def delete(self, rule: UtilityFormattingRule) -> None:
        """Delete a rule."""
        await self._session.delete(rule)
        await self._session.flush()
