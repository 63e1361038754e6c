# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Settings API endpoints for runtime configuration."""

import logging
from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from src.api.dependencies import Store
from src.exceptions import NotFoundError
from src.services.settings_store import SettingsStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["Settings"])

SettingValue = str | int | float | bool | list[str] | None


class SettingResponse(BaseModel):
    """Response model for a single setting."""

    category: str = Field(description="Setting category")
    key: str = Field(description="Setting key")
    value: SettingValue = Field(default=None, description="Value, null when encrypted")
    encrypted: bool = Field(description="Whether the value is encrypted at rest")
    has_secret: bool | None = Field(
        default=None, description="Whether an encrypted value is stored"
    )
    description: str | None = Field(default=None, description="Setting description")


class CategoryResponse(BaseModel):
    """Response model for all settings of a category."""

    category: str = Field(description="Setting category")
    settings: list[SettingResponse] = Field(description="Settings in the category")


class SettingUpdateRequest(BaseModel):
    """Request model for writing a setting."""

    value: SettingValue = Field(description="New value")
    encrypted: bool = Field(default=False, description="Encrypt the value at rest")
    description: str | None = Field(
        default=None, description="New description; omitted keeps the current one"
    )


@router.get("")
async def list_categories(store: Store) -> dict[str, Any]:
    """List the categories that hold settings."""
    return {"categories": await store.categories()}


@router.get("/{category}", response_model=CategoryResponse)
async def get_category(category: str, store: Store) -> dict[str, Any]:
    """Get all settings in a category.

    Encrypted entries only report whether a secret is stored.
    """
    return {"category": category, "settings": await store.describe_category(category)}


@router.get("/{category}/{key}", response_model=SettingResponse)
async def get_setting(category: str, key: str, store: Store) -> dict[str, Any]:
    """Get a single setting."""
    entry = await store.describe(category, key)
    if entry is None:
        raise NotFoundError(f"Setting {category}.{key} not found", field="key")
    return entry


@router.put("/{category}/{key}", response_model=SettingResponse)
async def put_setting(
    category: str,
    key: str,
    request: SettingUpdateRequest,
    store: Store,
) -> dict[str, Any]:
    """Create or update a setting."""
    setting = await store.set(
        category,
        key,
        request.value,
        encrypted=request.encrypted,
        description=request.description,
    )
    return SettingsStore.describe_setting(setting)


@router.delete("/{category}/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_setting(category: str, key: str, store: Store) -> None:
    """Delete a setting."""
    if not await store.forget(category, key):
        raise NotFoundError(f"Setting {category}.{key} not found", field="key")
