# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Utility type registry: system and custom classification buckets."""

import logging
import re
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import (
    DuplicateKeyError,
    InUseError,
    InvalidKeyFormatError,
    NotFoundError,
    ValidationError,
)
from src.models.utility_type import (
    AVAILABLE_COLOR_SCHEMES,
    AVAILABLE_ICONS,
    DEFAULT_COLOR_SCHEME,
    DEFAULT_ICON,
    SYSTEM_TYPES,
    UtilityType,
)
from src.repositories.utility_type_repository import UtilityTypeRepository

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^[a-z0-9_]+$")
MAX_KEY_LENGTH = 50
MAX_LABEL_LENGTH = 100

# Custom types sort between the built-ins and "other"
CUSTOM_SORT_ORDER_BASE = 50


def validate_label(label: str | None) -> str:
    """Validate and normalize a display label.

    Args:
        label: Proposed label.

    Returns:
        Stripped label.

    Raises:
        ValidationError: If the label is empty or too long.
    """
    label = (label or "").strip()
    if not label:
        raise ValidationError("Label is required", field="label")
    if len(label) > MAX_LABEL_LENGTH:
        raise ValidationError(
            f"Label must be at most {MAX_LABEL_LENGTH} characters", field="label"
        )
    return label


def validate_icon(icon: str | None) -> str:
    """Validate an icon key against the icon registry.

    Raises:
        ValidationError: If the icon is not a known key.
    """
    if icon is None:
        return DEFAULT_ICON
    if icon not in AVAILABLE_ICONS:
        raise ValidationError(f"Unknown icon '{icon}'", field="icon")
    return icon


def validate_color_scheme(color_scheme: str | None) -> str:
    """Validate a color scheme key against the color registry.

    Raises:
        ValidationError: If the color scheme is not a known key.
    """
    if color_scheme is None:
        return DEFAULT_COLOR_SCHEME
    if color_scheme not in AVAILABLE_COLOR_SCHEMES:
        raise ValidationError(
            f"Unknown color scheme '{color_scheme}'", field="color_scheme"
        )
    return color_scheme


class UtilityTypeService:
    """Create, rename, delete and reset utility types."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service.

        Args:
            session: Async database session.
        """
        self._session = session
        self._repo = UtilityTypeRepository(session)

    async def list_with_usage(self) -> list[dict[str, Any]]:
        """List utility types with their usage counts.

        Returns:
            One dict per type including accounts_count, expenses_count
            and can_delete.
        """
        types = await self._repo.get_all()
        usage = await self._repo.usage_counts()
        rows = []
        for utility_type in types:
            accounts_count, expenses_count = usage.get(utility_type.id, (0, 0))
            rows.append(
                {
                    "id": utility_type.id,
                    "key": utility_type.key,
                    "label": utility_type.label,
                    "icon": utility_type.icon_or_default,
                    "color_scheme": utility_type.color_scheme_or_default,
                    "sort_order": utility_type.sort_order,
                    "is_system": utility_type.is_system,
                    "accounts_count": accounts_count,
                    "expenses_count": expenses_count,
                    "can_delete": not utility_type.is_system
                    and accounts_count == 0
                    and expenses_count == 0,
                }
            )
        return rows

    async def get(self, type_id: int) -> UtilityType:
        """Get a utility type by ID.

        Raises:
            NotFoundError: If no such type exists.
        """
        utility_type = await self._repo.get_by_id(type_id)
        if utility_type is None:
            raise NotFoundError(f"Utility type {type_id} not found", field="id")
        return utility_type

    async def get_by_key(self, key: str) -> UtilityType | None:
        """Get a utility type by key, or None."""
        return await self._repo.get_by_key(key)

    async def create(
        self,
        key: str,
        label: str,
        icon: str | None = None,
        color_scheme: str | None = None,
    ) -> UtilityType:
        """Create a custom utility type.

        Args:
            key: Stable lowercase identifier.
            label: Display name.
            icon: Icon registry key; defaults to the generic icon.
            color_scheme: Color registry key; defaults to slate.

        Returns:
            The created utility type.

        Raises:
            InvalidKeyFormatError: If key is not ``[a-z0-9_]+``.
            DuplicateKeyError: If key already exists.
            ValidationError: For an empty label or unknown icon/color.
        """
        if not key or len(key) > MAX_KEY_LENGTH or not KEY_PATTERN.match(key):
            msg = (
                "Key may only contain lowercase letters, digits and underscores "
                f"(max {MAX_KEY_LENGTH} characters)"
            )
            raise InvalidKeyFormatError(msg, field="key")

        label = validate_label(label)
        icon = validate_icon(icon)
        color_scheme = validate_color_scheme(color_scheme)

        if await self._repo.get_by_key(key) is not None:
            raise DuplicateKeyError(f"Utility type '{key}' already exists", field="key")

        sort_order = CUSTOM_SORT_ORDER_BASE + await self._repo.count_custom()
        utility_type = UtilityType(
            key=key,
            label=label,
            icon=icon,
            color_scheme=color_scheme,
            sort_order=sort_order,
            is_system=False,
        )
        try:
            created = await self._repo.create(utility_type)
        except IntegrityError as e:
            raise DuplicateKeyError(
                f"Utility type '{key}' already exists", field="key"
            ) from e

        logger.info("Created utility type %s", key)
        return created

    async def rename(self, type_id: int, label: str) -> UtilityType:
        """Change the label of a utility type. The key never changes.

        Raises:
            NotFoundError: If no such type exists.
            ValidationError: If the label is empty.
        """
        return await self.update(type_id, label=label)

    async def update(
        self,
        type_id: int,
        label: str | None = None,
        icon: str | None = None,
        color_scheme: str | None = None,
    ) -> UtilityType:
        """Update display attributes of a utility type.

        Args:
            type_id: Utility type ID.
            label: New label, or None to keep.
            icon: New icon key, or None to keep.
            color_scheme: New color scheme key, or None to keep.

        Returns:
            The updated utility type.
        """
        utility_type = await self.get(type_id)
        if label is not None:
            utility_type.label = validate_label(label)
        if icon is not None:
            utility_type.icon = validate_icon(icon)
        if color_scheme is not None:
            utility_type.color_scheme = validate_color_scheme(color_scheme)
        return await self._repo.update(utility_type)

    async def delete(self, type_id: int) -> None:
        """Delete an unused custom utility type.

        Raises:
            NotFoundError: If no such type exists.
            InUseError: If the type is a system type or is referenced by an
                account mapping or a classified expense.
        """
        utility_type = await self.get(type_id)
        if utility_type.is_system:
            raise InUseError(
                f"System utility type '{utility_type.key}' cannot be deleted",
                field="id",
            )

        accounts_count = await self._repo.accounts_count(type_id)
        expenses_count = await self._repo.expenses_count(type_id)
        if accounts_count or expenses_count:
            msg = (
                f"Utility type '{utility_type.key}' is in use by "
                f"{accounts_count} account mapping(s) and "
                f"{expenses_count} classified expense(s)"
            )
            raise InUseError(msg, field="id")

        await self._repo.delete(utility_type)
        logger.info("Deleted utility type %s", utility_type.key)

    async def ensure_system_types(self) -> int:
        """Create any missing built-in types; existing rows are untouched.

        Returns:
            Number of system types created.
        """
        created = 0
        for key, label, icon, color_scheme, sort_order in SYSTEM_TYPES:
            if await self._repo.get_by_key(key) is not None:
                continue
            try:
                await self._repo.create(
                    UtilityType(
                        key=key,
                        label=label,
                        icon=icon,
                        color_scheme=color_scheme,
                        sort_order=sort_order,
                        is_system=True,
                    )
                )
            except IntegrityError:
                logger.debug("System utility type %s created concurrently", key)
                continue
            created += 1
        return created

    async def reset_to_defaults(self) -> dict[str, Any]:
        """Remove every unused custom type and restore missing system types.

        Custom types still referenced by mappings or expenses are kept. Each
        delete runs in its own SAVEPOINT; a failed delete is reported and
        the remaining types are still processed.

        Returns:
            Dict with counts: removed, restored, errors, plus error_details.
        """
        usage = await self._repo.usage_counts()
        stats: dict[str, Any] = {
            "removed": 0,
            "restored": 0,
            "errors": 0,
            "error_details": [],
        }
        for utility_type in await self._repo.get_all():
            if utility_type.is_system:
                continue
            key = utility_type.key
            if usage.get(utility_type.id, (0, 0)) != (0, 0):
                logger.debug("Keeping in-use utility type %s", key)
                continue
            try:
                async with self._session.begin_nested():
                    await self._repo.delete(utility_type)
            except Exception as e:
                stats["errors"] += 1
                stats["error_details"].append({"key": key, "error": str(e)})
                logger.error("Failed to remove utility type %s: %s", key, e)
                continue
            stats["removed"] += 1

        stats["restored"] = await self.ensure_system_types()
        logger.info(
            "Utility types reset: %d custom removed, %d system restored, %d errors",
            stats["removed"],
            stats["restored"],
            stats["errors"],
        )
        return stats

    @staticmethod
    def icon_options() -> dict[str, str]:
        """Get the icon registry as key to display name."""
        return AVAILABLE_ICONS.copy()

    @staticmethod
    def color_scheme_options() -> dict[str, str]:
        """Get the color scheme registry as key to display name."""
        return AVAILABLE_COLOR_SCHEMES.copy()

    # Defined last: the name shadows the builtin in annotations below it
    async def list(self) -> list[UtilityType]:
        """List all utility types in display order."""
        return list(await self._repo.get_all())
