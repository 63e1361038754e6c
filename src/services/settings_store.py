# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Category-scoped settings store with typed reads and encrypted values."""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import ConfigTypeError, ValidationError
from src.models.setting import Setting
from src.repositories.setting_repository import SettingRepository

logger = logging.getLogger(__name__)

KIND_STRING = "string"
KIND_NUMBER = "number"
KIND_INTEGER = "integer"
KIND_BOOLEAN = "boolean"
KIND_LIST = "list"

FEATURES_CATEGORY = "features"

# (category, key) -> (value kind, nullable)
SETTING_SCHEMA: dict[tuple[str, str], tuple[str, bool]] = {
    ("sync", "full_sync_time"): (KIND_STRING, False),
    ("sync", "incremental_sync_interval"): (KIND_INTEGER, False),
    ("sync", "batch_size"): (KIND_INTEGER, False),
    ("sync", "incremental_days"): (KIND_INTEGER, False),
    ("sync", "full_sync_lookback_days"): (KIND_INTEGER, False),
    ("sync", "resources"): (KIND_LIST, False),
    ("business_hours", "enabled"): (KIND_BOOLEAN, False),
    ("business_hours", "timezone"): (KIND_STRING, False),
    ("business_hours", "start_hour"): (KIND_INTEGER, False),
    ("business_hours", "end_hour"): (KIND_INTEGER, False),
    ("business_hours", "weekdays_only"): (KIND_BOOLEAN, False),
    ("business_hours", "business_hours_interval"): (KIND_INTEGER, False),
    ("business_hours", "off_hours_interval"): (KIND_INTEGER, False),
    ("rate_limit", "requests_per_minute"): (KIND_INTEGER, False),
    ("rate_limit", "max_retries"): (KIND_INTEGER, False),
    ("rate_limit", "initial_backoff_seconds"): (KIND_NUMBER, False),
    ("rate_limit", "backoff_multiplier"): (KIND_NUMBER, False),
    ("rate_limit", "max_backoff_seconds"): (KIND_NUMBER, False),
    ("alerts", "failure_threshold"): (KIND_INTEGER, False),
    ("alerts", "cooldown_minutes"): (KIND_INTEGER, False),
    ("alerts", "recipients"): (KIND_LIST, True),
    ("features", "notifications"): (KIND_BOOLEAN, False),
    ("features", "incremental_sync"): (KIND_BOOLEAN, False),
    ("features", "dashboard_refresh"): (KIND_BOOLEAN, False),
    ("appfolio", "api_base_url"): (KIND_STRING, False),
    ("appfolio", "client_id"): (KIND_STRING, True),
    ("appfolio", "client_secret"): (KIND_STRING, True),
}

# Always encrypted at rest regardless of the caller's flag
SENSITIVE_SETTINGS: frozenset[tuple[str, str]] = frozenset(
    {
        ("appfolio", "client_id"),
        ("appfolio", "client_secret"),
        ("google_sso", "client_secret"),
    }
)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def matches_kind(value: Any, kind: str) -> bool:
    """Check a value against a schema kind.

    Args:
        value: Value to check.
        kind: One of the KIND_* constants.

    Returns:
        True if the value is of that kind. Booleans never count as numbers
        and lists must contain only strings.
    """
    if kind == KIND_STRING:
        return isinstance(value, str)
    if kind == KIND_INTEGER:
        return _is_number(value) and float(value).is_integer()
    if kind == KIND_NUMBER:
        return _is_number(value)
    if kind == KIND_BOOLEAN:
        return isinstance(value, bool)
    if kind == KIND_LIST:
        return isinstance(value, list) and all(isinstance(v, str) for v in value)
    return False


def is_tagged_value(value: Any) -> bool:
    """Check that a value fits the settings tagged union.

    Args:
        value: Value to check.

    Returns:
        True for str, number, bool, list of str, or None.
    """
    return (
        value is None
        or isinstance(value, str | bool)
        or _is_number(value)
        or matches_kind(value, KIND_LIST)
    )


def validate_setting(category: str, key: str, value: Any) -> None:
    """Validate a value at the write boundary.

    Args:
        category: Setting category.
        key: Setting key.
        value: Value to be written.

    Raises:
        ValidationError: If the value does not fit the schema for the key.
    """
    if not category or not category.strip():
        raise ValidationError("Category is required", field="category")
    if not key or not key.strip():
        raise ValidationError("Key is required", field="key")

    if not is_tagged_value(value):
        msg = (
            f"Setting {category}.{key} must be a string, number, boolean, "
            "list of strings or null"
        )
        raise ValidationError(msg, field="value")

    if category == FEATURES_CATEGORY and not isinstance(value, bool):
        raise ValidationError(f"Feature flag {key} must be true or false", field="value")

    schema = SETTING_SCHEMA.get((category, key))
    if schema is None:
        return

    kind, nullable = schema
    if value is None:
        if not nullable:
            raise ValidationError(f"Setting {category}.{key} cannot be null", field="value")
        return
    if not matches_kind(value, kind):
        raise ValidationError(
            f"Setting {category}.{key} must be a {kind}", field="value"
        )


class SettingsStore:
    """Read and write settings by category and key.

    The store is bound to one database session and is passed explicitly to
    whatever needs configuration. Reads never expose ciphertext.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize store.

        Args:
            session: Async database session.
        """
        self._session = session
        self._repo = SettingRepository(session)

    async def get(self, category: str, key: str, default: Any = None) -> Any:
        """Get a setting value.

        Args:
            category: Setting category (e.g. 'sync', 'features').
            key: Setting key within the category.
            default: Value returned when the setting does not exist.

        Returns:
            The (decrypted) setting value, or default if absent.
        """
        setting = await self._repo.get(category, key)
        if setting is None:
            return default
        return setting.plain_value

    async def _get_typed(
        self, category: str, key: str, kind: str, default: Any
    ) -> Any:
        value = await self.get(category, key, default)
        if value is None:
            return value
        if not matches_kind(value, kind):
            msg = (
                f"Setting {category}.{key} holds {type(value).__name__}, "
                f"expected {kind}"
            )
            raise ConfigTypeError(msg, field=key)
        return value

    async def get_str(self, category: str, key: str, default: str | None = None) -> str | None:
        """Get a string setting.

        Raises:
            ConfigTypeError: If the stored value is not a string.
        """
        return await self._get_typed(category, key, KIND_STRING, default)

    async def get_int(self, category: str, key: str, default: int | None = None) -> int | None:
        """Get an integer setting.

        Raises:
            ConfigTypeError: If the stored value is not a whole number.
        """
        value = await self._get_typed(category, key, KIND_INTEGER, default)
        return int(value) if value is not None else None

    async def get_float(
        self, category: str, key: str, default: float | None = None
    ) -> float | None:
        """Get a numeric setting.

        Raises:
            ConfigTypeError: If the stored value is not a number.
        """
        value = await self._get_typed(category, key, KIND_NUMBER, default)
        return float(value) if value is not None else None

    async def get_bool(self, category: str, key: str, default: bool | None = None) -> bool | None:
        """Get a boolean setting.

        Raises:
            ConfigTypeError: If the stored value is not a boolean.
        """
        return await self._get_typed(category, key, KIND_BOOLEAN, default)

    async def get_list(
        self, category: str, key: str, default: list[str] | None = None
    ) -> list[str] | None:
        """Get a list-of-strings setting.

        Raises:
            ConfigTypeError: If the stored value is a scalar.
        """
        return await self._get_typed(category, key, KIND_LIST, default)

    async def get_category(self, category: str) -> dict[str, Any]:
        """Get all settings for a category.

        Args:
            category: Setting category.

        Returns:
            Mapping of key to decrypted value.
        """
        settings = await self._repo.get_category(category)
        return {setting.key: setting.plain_value for setting in settings}

    async def describe_category(self, category: str) -> list[dict[str, Any]]:
        """Describe a category for display without revealing secrets.

        Args:
            category: Setting category.

        Returns:
            One entry per key. Encrypted entries carry ``has_secret``
            instead of a value.
        """
        settings = await self._repo.get_category(category)
        return [self.describe_setting(setting) for setting in settings]

    async def describe(self, category: str, key: str) -> dict[str, Any] | None:
        """Describe a single setting without revealing secrets.

        Args:
            category: Setting category.
            key: Setting key.

        Returns:
            Description dict, or None if absent.
        """
        setting = await self._repo.get(category, key)
        return self.describe_setting(setting) if setting is not None else None

    @staticmethod
    def describe_setting(setting: Setting) -> dict[str, Any]:
        """Describe a setting for display; encrypted values are withheld."""
        entry: dict[str, Any] = {
            "category": setting.category,
            "key": setting.key,
            "encrypted": setting.encrypted,
            "description": setting.description,
        }
        if setting.encrypted:
            entry["value"] = None
            entry["has_secret"] = setting.has_secret()
        else:
            entry["value"] = setting.value
        return entry

    async def categories(self) -> list[str]:
        """Get the categories that currently hold settings."""
        return await self._repo.get_categories()

    async def is_feature_enabled(self, feature: str, default: bool = False) -> bool:
        """Check if a feature flag is enabled.

        Args:
            feature: Key in the 'features' category.
            default: Value used when the flag is not set.

        Returns:
            The stored flag, or ``default`` when unset.

        Raises:
            ConfigTypeError: If the stored flag is not a boolean.
        """
        value = await self.get_bool(FEATURES_CATEGORY, feature, default)
        return default if value is None else value

    async def has_secret(self, category: str, key: str) -> bool:
        """Check whether an encrypted value is stored, without decrypting it.

        Args:
            category: Setting category.
            key: Setting key.

        Returns:
            True if an encrypted, non-null value exists.
        """
        setting = await self._repo.get(category, key)
        return setting is not None and setting.has_secret()

    async def set(
        self,
        category: str,
        key: str,
        value: Any,
        encrypted: bool = False,
        description: str | None = None,
    ) -> Setting:
        """Create or update a setting.

        A description passed here overwrites the stored one; passing None
        keeps the existing description.

        Args:
            category: Setting category.
            key: Setting key within the category.
            value: Value to store.
            encrypted: Whether to encrypt the value at rest.
            description: Optional description.

        Returns:
            The stored setting.

        Raises:
            ValidationError: If the value fails validation for the key.
        """
        validate_setting(category, key, value)
        encrypted = encrypted or (category, key) in SENSITIVE_SETTINGS

        setting = await self._repo.get(category, key)
        if setting is None:
            setting = Setting(category=category, key=key, description=description)
            setting.store_value(value, encrypted)
            try:
                created = await self._repo.add(setting)
            except IntegrityError:
                # Lost a create race; apply as an update instead
                logger.info("Setting %s.%s created concurrently, updating", category, key)
                setting = await self._repo.get(category, key)
                if setting is None:
                    raise
            else:
                logger.info("Created setting %s.%s", category, key)
                return created

        setting.store_value(value, encrypted)
        if description is not None:
            setting.description = description
        updated = await self._repo.update(setting)
        logger.info("Updated setting %s.%s", category, key)
        return updated

    async def seed_default(
        self,
        category: str,
        key: str,
        value: Any,
        description: str | None = None,
        encrypted: bool = False,
    ) -> bool:
        """Create a setting only if it does not exist yet.

        Existing values are never overwritten, so seeding can run on every
        deploy.

        Args:
            category: Setting category.
            key: Setting key within the category.
            value: Default value.
            description: Optional description.
            encrypted: Whether to encrypt the value at rest.

        Returns:
            True if the setting was created, False if it already existed.

        Raises:
            ValidationError: If the default fails validation for the key.
        """
        validate_setting(category, key, value)

        if await self._repo.exists(category, key):
            return False

        setting = Setting(category=category, key=key, description=description)
        setting.store_value(value, encrypted or (category, key) in SENSITIVE_SETTINGS)
        try:
            await self._repo.add(setting)
        except IntegrityError:
            logger.debug("Setting %s.%s seeded concurrently, skipping", category, key)
            return False

        logger.debug("Seeded setting %s.%s", category, key)
        return True

    async def forget(self, category: str, key: str) -> bool:
        """Delete a setting.

        Args:
            category: Setting category.
            key: Setting key.

        Returns:
            True if a row was deleted.
        """
        deleted = await self._repo.delete(category, key)
        if deleted:
            logger.info("Deleted setting %s.%s", category, key)
        return deleted > 0

    async def forget_category(self, category: str) -> int:
        """Delete every setting in a category.

        Args:
            category: Setting category.

        Returns:
            Number of settings deleted.
        """
        deleted = await self._repo.delete_category(category)
        logger.info("Deleted %d settings in category %s", deleted, category)
        return deleted
