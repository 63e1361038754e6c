# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Per-property utility exclusions for cost comparisons."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import DuplicateKeyError, NotFoundError, ValidationError
from src.models.property_utility_exclusion import PropertyUtilityExclusion
from src.repositories.exclusion_repository import ExclusionRepository
from src.repositories.utility_type_repository import UtilityTypeRepository

logger = logging.getLogger(__name__)

MAX_PROPERTY_ID_LENGTH = 100
MAX_REASON_LENGTH = 255


class ExclusionService:
    """Exclude properties from the comparisons of single utility types.

    An excluded property keeps its expenses and their tags; it is only left
    out of the per-property comparison for that utility type.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service.

        Args:
            session: Async database session.
        """
        self._session = session
        self._repo = ExclusionRepository(session)
        self._type_repo = UtilityTypeRepository(session)

    async def list_exclusions(
        self, utility_type_id: int | None = None
    ) -> list[PropertyUtilityExclusion]:
        """List exclusions, optionally for one utility type."""
        return list(await self._repo.get_all(utility_type_id))

    async def get(self, exclusion_id: int) -> PropertyUtilityExclusion:
        """Get an exclusion by ID.

        Raises:
            NotFoundError: If no such exclusion exists.
        """
        exclusion = await self._repo.get_by_id(exclusion_id)
        if exclusion is None:
            raise NotFoundError(f"Exclusion {exclusion_id} not found", field="id")
        return exclusion

    async def exclude(
        self,
        property_external_id: str,
        utility_type_id: int,
        reason: str | None = None,
    ) -> PropertyUtilityExclusion:
        """Exclude a property from one utility type's comparison.

        Args:
            property_external_id: Property ID from the property-management system.
            utility_type_id: Utility type to exclude the property from.
            reason: Optional note, e.g. 'Tenant pays electric'.

        Returns:
            The created exclusion.

        Raises:
            ValidationError: If the property ID is empty or a field is too long.
            NotFoundError: If the utility type does not exist.
            DuplicateKeyError: If the property is already excluded for the type.
        """
        property_id = (property_external_id or "").strip()
        if not property_id:
            raise ValidationError("Property ID is required", field="property_external_id")
        if len(property_id) > MAX_PROPERTY_ID_LENGTH:
            raise ValidationError(
                f"Property ID must be at most {MAX_PROPERTY_ID_LENGTH} characters",
                field="property_external_id",
            )
        reason = (reason or "").strip() or None
        if reason is not None and len(reason) > MAX_REASON_LENGTH:
            raise ValidationError(
                f"Reason must be at most {MAX_REASON_LENGTH} characters", field="reason"
            )

        utility_type = await self._type_repo.get_by_id(utility_type_id)
        if utility_type is None:
            raise NotFoundError(
                f"Utility type {utility_type_id} not found", field="utility_type_id"
            )

        duplicate_msg = (
            f"Property {property_id} is already excluded from {utility_type.label}"
        )
        if await self._repo.get_by_property(property_id, utility_type_id) is not None:
            raise DuplicateKeyError(duplicate_msg, field="property_external_id")

        exclusion = PropertyUtilityExclusion(
            property_external_id=property_id,
            utility_type_id=utility_type_id,
            reason=reason,
        )
        try:
            created = await self._repo.create(exclusion)
        except IntegrityError as e:
            raise DuplicateKeyError(duplicate_msg, field="property_external_id") from e

        logger.info("Excluded property %s from utility type %s", property_id, utility_type.key)
        return created

    async def delete(self, exclusion_id: int) -> None:
        """Remove an exclusion.

        Raises:
            NotFoundError: If the exclusion does not exist.
        """
        exclusion = await self.get(exclusion_id)
        property_id = exclusion.property_external_id
        await self._repo.delete(exclusion)
        logger.info("Removed utility exclusion for property %s", property_id)

    async def excluded_property_ids(self, type_key: str) -> list[str]:
        """Get the properties excluded for a utility type key."""
        return await self._repo.get_excluded_property_ids(type_key)

    async def is_excluded(self, property_external_id: str, type_key: str) -> bool:
        """Check whether a property is excluded for a utility type key."""
        return property_external_id in await self.excluded_property_ids(type_key)
