# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for UtilityAccount database operations."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.utility_account import UtilityAccount


class UtilityAccountRepository:
    """Repository for GL account to utility type mappings."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, account_id: int) -> UtilityAccount | None:
        """Get a mapping by ID.

        Args:
            account_id: UtilityAccount primary key.

        Returns:
            UtilityAccount if found, None otherwise.
        """
        result = await self._session.execute(
            select(UtilityAccount).where(UtilityAccount.id == account_id)
        )
        return result.scalar_one_or_none()

    async def get_by_gl_number(self, gl_account_number: str) -> UtilityAccount | None:
        """Get a mapping by GL account number.

        Args:
            gl_account_number: General-ledger account number.

        Returns:
            UtilityAccount if found, None otherwise.
        """
        result = await self._session.execute(
            select(UtilityAccount).where(
                UtilityAccount.gl_account_number == gl_account_number
            )
        )
        return result.scalar_one_or_none()

    async def get_all(self) -> Sequence[UtilityAccount]:
        """Get all mappings ordered by GL account number."""
        result = await self._session.execute(
            select(UtilityAccount).order_by(UtilityAccount.gl_account_number)
        )
        return result.scalars().all()

    async def get_active_type_map(self) -> dict[str, int]:
        """Get active mappings keyed by GL account number.

        Returns:
            Mapping of GL account number to utility type ID.
        """
        result = await self._session.execute(
            select(UtilityAccount.gl_account_number, UtilityAccount.utility_type_id).where(
                UtilityAccount.is_active.is_(True)
            )
        )
        return {number: type_id for number, type_id in result}

    async def create(self, account: UtilityAccount) -> UtilityAccount:
        """Insert a new mapping inside a SAVEPOINT.

        Args:
            account: UtilityAccount entity to create.

        Returns:
            Created mapping with ID.

        Raises:
            sqlalchemy.exc.IntegrityError: If the GL number is already mapped.
        """
        async with self._session.begin_nested():
            self._session.add(account)
            await self._session.flush()
        await self._session.refresh(account)
        return account

    async def update(self, account: UtilityAccount) -> UtilityAccount:
        """Flush changes to an existing mapping.

        Args:
            account: UtilityAccount entity with updates.

        Returns:
            Updated mapping.
        """
        await self._session.flush()
        await self._session.refresh(account)
        return account

    async def delete(self, account: UtilityAccount) -> None:
        """Delete a mapping.

        Args:
            account: UtilityAccount entity to delete.
        """
        await self._session.delete(account)
        await self._session.flush()
