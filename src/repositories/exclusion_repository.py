# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for PropertyUtilityExclusion database operations."""

from collections.abc import Sequence

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.property_utility_exclusion import PropertyUtilityExclusion
from src.models.utility_type import UtilityType


def excluded_properties_query(utility_type_id: int) -> Select:
    """Build a subquery of property IDs excluded for a utility type."""
    return select(PropertyUtilityExclusion.property_external_id).where(
        PropertyUtilityExclusion.utility_type_id == utility_type_id
    )


class ExclusionRepository:
    """Repository for per-property utility exclusions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, exclusion_id: int) -> PropertyUtilityExclusion | None:
        """Get an exclusion by ID."""
        result = await self._session.execute(
            select(PropertyUtilityExclusion).where(
                PropertyUtilityExclusion.id == exclusion_id
            )
        )
        return result.scalar_one_or_none()

    async def get_by_property(
        self, property_external_id: str, utility_type_id: int
    ) -> PropertyUtilityExclusion | None:
        """Get the exclusion of one property for one utility type."""
        result = await self._session.execute(
            select(PropertyUtilityExclusion).where(
                PropertyUtilityExclusion.property_external_id == property_external_id,
                PropertyUtilityExclusion.utility_type_id == utility_type_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_all(
        self, utility_type_id: int | None = None
    ) -> Sequence[PropertyUtilityExclusion]:
        """Get exclusions, optionally for one utility type.

        Args:
            utility_type_id: Restrict to this utility type.

        Returns:
            Exclusions ordered by property ID, then utility type.
        """
        query = select(PropertyUtilityExclusion).order_by(
            PropertyUtilityExclusion.property_external_id,
            PropertyUtilityExclusion.utility_type_id,
        )
        if utility_type_id is not None:
            query = query.where(PropertyUtilityExclusion.utility_type_id == utility_type_id)
        result = await self._session.execute(query)
        return result.scalars().all()

    async def get_excluded_property_ids(self, type_key: str) -> list[str]:
        """Get property IDs excluded for a utility type key.

        Args:
            type_key: Utility type key such as 'water'.

        Returns:
            Sorted property IDs.
        """
        result = await self._session.execute(
            select(PropertyUtilityExclusion.property_external_id)
            .join(UtilityType, PropertyUtilityExclusion.utility_type_id == UtilityType.id)
            .where(UtilityType.key == type_key)
            .order_by(PropertyUtilityExclusion.property_external_id)
        )
        return list(result.scalars().all())

    async def create(self, exclusion: PropertyUtilityExclusion) -> PropertyUtilityExclusion:
        """Insert a new exclusion inside a SAVEPOINT.

        Raises:
            sqlalchemy.exc.IntegrityError: If the property is already excluded
                for the utility type.
        """
        async with self._session.begin_nested():
            self._session.add(exclusion)
            await self._session.flush()
        await self._session.refresh(exclusion)
        return exclusion

    async def delete(self, exclusion: PropertyUtilityExclusion) -> None:
        """Delete an exclusion."""
        await self._session.delete(exclusion)
        await self._session.flush()
