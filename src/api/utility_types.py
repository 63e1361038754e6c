# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Utility type registry API endpoints."""

import logging
from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import DbSession, Runner
from src.api.jobs import JobQueuedResponse
from src.models.utility_type import UtilityType
from src.services.expense_service import ExpenseService
from src.services.formatting_service import UtilityFormattingService
from src.services.utility_type_service import UtilityTypeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/utility-types", tags=["Utility Types"])


class UtilityTypeResponse(BaseModel):
    """Response model for a utility type."""

    id: int = Field(description="Utility type ID")
    key: str = Field(description="Stable identifier")
    label: str = Field(description="Display name")
    icon: str = Field(description="Icon registry key")
    color_scheme: str = Field(description="Color scheme registry key")
    sort_order: int = Field(description="Display order")
    is_system: bool = Field(description="Whether this is a built-in type")
    accounts_count: int | None = Field(default=None, description="Mapped GL accounts")
    expenses_count: int | None = Field(default=None, description="Classified expenses")
    can_delete: bool | None = Field(default=None, description="Whether deletion is allowed")


class UtilityTypesResponse(BaseModel):
    """Response model for the utility type collection."""

    utility_types: list[UtilityTypeResponse] = Field(description="Utility types")
    total: int = Field(description="Total count")


class UtilityTypeCreateRequest(BaseModel):
    """Request model for creating a custom utility type."""

    key: str = Field(description="Lowercase letters, digits and underscores")
    label: str = Field(description="Display name")
    icon: str | None = Field(default=None, description="Icon registry key")
    color_scheme: str | None = Field(default=None, description="Color scheme key")


class UtilityTypeUpdateRequest(BaseModel):
    """Request model for updating a utility type."""

    label: str | None = Field(default=None, description="Display name")
    icon: str | None = Field(default=None, description="Icon registry key")
    color_scheme: str | None = Field(default=None, description="Color scheme key")


def _type_to_response(utility_type: UtilityType) -> dict[str, Any]:
    return {
        "id": utility_type.id,
        "key": utility_type.key,
        "label": utility_type.label,
        "icon": utility_type.icon_or_default,
        "color_scheme": utility_type.color_scheme_or_default,
        "sort_order": utility_type.sort_order,
        "is_system": utility_type.is_system,
    }


@router.get("", response_model=UtilityTypesResponse)
async def list_utility_types(db: DbSession) -> dict[str, Any]:
    """List utility types with usage counts."""
    rows = await UtilityTypeService(db).list_with_usage()
    return {"utility_types": rows, "total": len(rows)}


@router.get("/options")
async def get_options() -> dict[str, Any]:
    """Get the icon and color scheme registries."""
    return {
        "icons": UtilityTypeService.icon_options(),
        "color_schemes": UtilityTypeService.color_scheme_options(),
    }


@router.post("", response_model=UtilityTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_utility_type(
    request: UtilityTypeCreateRequest, db: DbSession
) -> dict[str, Any]:
    """Create a custom utility type."""
    utility_type = await UtilityTypeService(db).create(
        key=request.key,
        label=request.label,
        icon=request.icon,
        color_scheme=request.color_scheme,
    )
    return _type_to_response(utility_type)


@router.patch("/{type_id}", response_model=UtilityTypeResponse)
async def update_utility_type(
    type_id: int, request: UtilityTypeUpdateRequest, db: DbSession
) -> dict[str, Any]:
    """Update the label, icon or color scheme of a utility type."""
    utility_type = await UtilityTypeService(db).update(
        type_id,
        label=request.label,
        icon=request.icon,
        color_scheme=request.color_scheme,
    )
    return _type_to_response(utility_type)


@router.delete("/{type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_utility_type(type_id: int, db: DbSession) -> None:
    """Delete an unused custom utility type."""
    await UtilityTypeService(db).delete(type_id)


async def reset_utility_types(session: AsyncSession) -> dict[str, Any]:
    """Job body for resetting utility types to the defaults."""
    return await UtilityTypeService(session).reset_to_defaults()


@router.post(
    "/reset",
    response_model=JobQueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def reset_to_defaults(runner: Runner) -> dict[str, Any]:
    """Queue a reset of the utility type registry."""
    job_id = runner.enqueue("utility-types:reset", reset_utility_types)
    return {"job_id": job_id, "status": runner.get_status(job_id)["status"]}


@router.get("/{type_key}/comparison")
async def get_comparison(
    type_key: str,
    db: DbSession,
    as_of: Annotated[date | None, Query(description="Reference date")] = None,
) -> dict[str, Any]:
    """Get per-property cost comparison with conditional formatting applied."""
    comparison = await ExpenseService(db).build_property_comparison(type_key, as_of)
    return await UtilityFormattingService(db).apply_formatting_to_comparison(
        comparison, type_key
    )
