# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for UtilityType database operations."""

from collections.abc import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.expense_record import ExpenseRecord
from src.models.formatting_rule import UtilityFormattingRule
from src.models.property_utility_exclusion import PropertyUtilityExclusion
from src.models.utility_account import UtilityAccount
from src.models.utility_type import UtilityType


class UtilityTypeRepository:
    """Repository for UtilityType CRUD and usage queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, type_id: int) -> UtilityType | None:
        """Get utility type by ID.

        Args:
            type_id: UtilityType primary key.

        Returns:
            UtilityType if found, None otherwise.
        """
        result = await self._session.execute(
            select(UtilityType).where(UtilityType.id == type_id)
        )
        return result.scalar_one_or_none()

    async def get_by_key(self, key: str) -> UtilityType | None:
        """Get utility type by its key.

        Args:
            key: Utility type key such as 'water'.

        Returns:
            UtilityType if found, None otherwise.
        """
        result = await self._session.execute(
            select(UtilityType).where(UtilityType.key == key)
        )
        return result.scalar_one_or_none()

    async def get_all(self) -> Sequence[UtilityType]:
        """Get all utility types ordered for display.

        Returns:
            Sequence of utility types ordered by sort_order then key.
        """
        result = await self._session.execute(
            select(UtilityType).order_by(UtilityType.sort_order, UtilityType.key)
        )
        return result.scalars().all()

    async def count_custom(self) -> int:
        """Count non-system utility types."""
        result = await self._session.execute(
            select(func.count(UtilityType.id)).where(UtilityType.is_system.is_(False))
        )
        return result.scalar_one()

    async def accounts_count(self, type_id: int) -> int:
        """Count account mappings of a type, active or not."""
        result = await self._session.execute(
            select(func.count(UtilityAccount.id)).where(
                UtilityAccount.utility_type_id == type_id
            )
        )
        return result.scalar_one()

    async def expenses_count(self, type_id: int) -> int:
        """Count expense records classified as a type."""
        result = await self._session.execute(
            select(func.count(ExpenseRecord.id)).where(
                ExpenseRecord.utility_type_id == type_id
            )
        )
        return result.scalar_one()

    async def usage_counts(self) -> dict[int, tuple[int, int]]:
        """Get account and expense counts for every type in two queries.

        Returns:
            Mapping of type ID to (accounts_count, expenses_count).
        """
        accounts = await self._session.execute(
            select(UtilityAccount.utility_type_id, func.count(UtilityAccount.id)).group_by(
                UtilityAccount.utility_type_id
            )
        )
        expenses = await self._session.execute(
            select(ExpenseRecord.utility_type_id, func.count(ExpenseRecord.id))
            .where(ExpenseRecord.utility_type_id.is_not(None))
            .group_by(ExpenseRecord.utility_type_id)
        )
        account_counts = {type_id: count for type_id, count in accounts}
        expense_counts = {type_id: count for type_id, count in expenses}
        type_ids = set(account_counts) | set(expense_counts)
        return {
            type_id: (account_counts.get(type_id, 0), expense_counts.get(type_id, 0))
            for type_id in type_ids
        }

    async def create(self, utility_type: UtilityType) -> UtilityType:
        """Insert a new utility type inside a SAVEPOINT.

        Args:
            utility_type: UtilityType entity to create.

        Returns:
            Created utility type with ID.

        Raises:
            sqlalchemy.exc.IntegrityError: If the key already exists.
        """
        async with self._session.begin_nested():
            self._session.add(utility_type)
            await self._session.flush()
        await self._session.refresh(utility_type)
        return utility_type

    async def update(self, utility_type: UtilityType) -> UtilityType:
        """Flush changes to an existing utility type.

        Args:
            utility_type: UtilityType entity with updates.

        Returns:
            Updated utility type.
        """
        await self._session.flush()
        await self._session.refresh(utility_type)
        return utility_type

    async def delete(self, utility_type: UtilityType) -> None:
        """Delete a utility type along with its formatting rules and exclusions.

        Args:
            utility_type: UtilityType entity to delete.
        """
        await self._session.execute(
            delete(UtilityFormattingRule).where(
                UtilityFormattingRule.utility_type_id == utility_type.id
            )
        )
        await self._session.execute(
            delete(PropertyUtilityExclusion).where(
                PropertyUtilityExclusion.utility_type_id == utility_type.id
            )
        )
        await self._session.delete(utility_type)
        await self._session.flush()
