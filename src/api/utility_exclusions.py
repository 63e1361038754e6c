# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Per-property utility exclusion API endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from src.api.dependencies import DbSession
from src.models.property_utility_exclusion import PropertyUtilityExclusion
from src.services.exclusion_service import ExclusionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/utility-exclusions", tags=["Utility Exclusions"])


class ExclusionResponse(BaseModel):
    """Response model for a property exclusion."""

    id: int = Field(description="Exclusion ID")
    property_external_id: str = Field(description="Excluded property ID")
    utility_type_id: int = Field(description="Utility type ID")
    utility_type_label: str = Field(description="Utility type label")
    reason: str | None = Field(default=None, description="Why the property is excluded")


class ExclusionsResponse(BaseModel):
    """Response model for the exclusion collection."""

    exclusions: list[ExclusionResponse] = Field(description="Exclusions")
    total: int = Field(description="Total count")


class ExclusionCreateRequest(BaseModel):
    """Request model for excluding a property."""

    property_external_id: str = Field(description="Property ID")
    utility_type_id: int = Field(description="Utility type ID")
    reason: str | None = Field(default=None, description="Optional note")


def _exclusion_to_response(exclusion: PropertyUtilityExclusion) -> dict[str, Any]:
    return {
        "id": exclusion.id,
        "property_external_id": exclusion.property_external_id,
        "utility_type_id": exclusion.utility_type_id,
        "utility_type_label": exclusion.utility_type_label,
        "reason": exclusion.reason,
    }


@router.get("", response_model=ExclusionsResponse)
async def list_exclusions(
    db: DbSession,
    utility_type_id: Annotated[
        int | None, Query(description="Only exclusions for this utility type")
    ] = None,
) -> dict[str, Any]:
    """List property exclusions."""
    exclusions = await ExclusionService(db).list_exclusions(utility_type_id)
    return {
        "exclusions": [_exclusion_to_response(e) for e in exclusions],
        "total": len(exclusions),
    }


@router.post("", response_model=ExclusionResponse, status_code=status.HTTP_201_CREATED)
async def create_exclusion(
    request: ExclusionCreateRequest, db: DbSession
) -> dict[str, Any]:
    """Exclude a property from one utility type's comparison."""
    service = ExclusionService(db)
    exclusion = await service.exclude(
        request.property_external_id, request.utility_type_id, reason=request.reason
    )
    return _exclusion_to_response(await service.get(exclusion.id))


@router.delete("/{exclusion_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_exclusion(exclusion_id: int, db: DbSession) -> None:
    """Remove a property exclusion."""
    await ExclusionService(db).delete(exclusion_id)
