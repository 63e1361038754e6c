# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for Setting database operations."""

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.setting import Setting


class SettingRepository:
    """Repository for Setting rows addressed by (category, key)."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get(self, category: str, key: str) -> Setting | None:
        """Get a setting by category and key.

        Args:
            category: Setting category.
            key: Setting key within the category.

        Returns:
            Setting if found, None otherwise.
        """
        result = await self._session.execute(
            select(Setting).where(Setting.category == category, Setting.key == key)
        )
        return result.scalar_one_or_none()

    async def exists(self, category: str, key: str) -> bool:
        """Check whether a setting row exists.

        Args:
            category: Setting category.
            key: Setting key within the category.

        Returns:
            True if the row exists.
        """
        result = await self._session.execute(
            select(Setting.id).where(Setting.category == category, Setting.key == key)
        )
        return result.first() is not None

    async def get_category(self, category: str) -> Sequence[Setting]:
        """Get all settings in a category ordered by key.

        Args:
            category: Setting category.

        Returns:
            Sequence of settings.
        """
        result = await self._session.execute(
            select(Setting).where(Setting.category == category).order_by(Setting.key)
        )
        return result.scalars().all()

    async def get_categories(self) -> list[str]:
        """Get the distinct category names.

        Returns:
            Sorted list of category names.
        """
        result = await self._session.execute(
            select(Setting.category).distinct().order_by(Setting.category)
        )
        return list(result.scalars().all())

    async def add(self, setting: Setting) -> Setting:
        """Insert a new setting row.

        The insert runs inside a SAVEPOINT so a unique-constraint race
        only rolls back this statement.

        Args:
            setting: Setting entity to insert.

        Returns:
            Inserted setting with ID.

        Raises:
            sqlalchemy.exc.IntegrityError: If (category, key) already exists.
        """
        async with self._session.begin_nested():
            self._session.add(setting)
            await self._session.flush()
        await self._session.refresh(setting)
        return setting

    async def update(self, setting: Setting) -> Setting:
        """Flush changes to an existing setting.

        Args:
            setting: Setting entity with updates.

        Returns:
            Updated setting.
        """
        await self._session.flush()
        await self._session.refresh(setting)
        return setting

    async def delete(self, category: str, key: str) -> int:
        """Delete one setting.

        Args:
            category: Setting category.
            key: Setting key.

        Returns:
            Number of rows deleted.
        """
        result = await self._session.execute(
            delete(Setting).where(Setting.category == category, Setting.key == key)
        )
        return result.rowcount or 0

    async def delete_category(self, category: str) -> int:
        """Delete every setting in a category.

        Args:
            category: Setting category.

        Returns:
            Number of rows deleted.
        """
        result = await self._session.execute(
            delete(Setting).where(Setting.category == category)
        )
        return result.rowcount or 0
