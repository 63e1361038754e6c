# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Utility formatting rule API endpoints."""

import logging
from decimal import Decimal
from typing import Annotated, Any

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from src.api.dependencies import DbSession
from src.models.formatting_rule import UtilityFormattingRule
from src.services.formatting_service import FormattingRuleService, UtilityFormattingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/formatting-rules", tags=["Formatting Rules"])


class FormattingRuleResponse(BaseModel):
    """Response model for a formatting rule."""

    id: int = Field(description="Rule ID")
    utility_type_id: int = Field(description="Utility type the rule applies to")
    name: str = Field(description="Rule name")
    operator: str = Field(description="increase_percent or decrease_percent")
    operator_label: str = Field(description="Human-readable operator")
    threshold: float = Field(description="Percent change threshold")
    color: str = Field(description="Text color")
    background_color: str | None = Field(default=None, description="Background color")
    priority: int = Field(description="Higher priorities are evaluated first")
    enabled: bool = Field(description="Whether the rule is evaluated")


class FormattingRuleCreateRequest(BaseModel):
    """Request model for creating a formatting rule."""

    utility_type_id: int = Field(description="Utility type ID")
    name: str = Field(description="Rule name")
    operator: str = Field(description="increase_percent or decrease_percent")
    threshold: Decimal = Field(description="Percent change threshold (0-1000)")
    color: str = Field(description="Text color as #RRGGBB")
    background_color: str | None = Field(default=None, description="Background #RRGGBB")
    priority: int = Field(default=0, description="Priority (0-100)")
    enabled: bool = Field(default=True, description="Whether the rule is evaluated")


class FormattingRuleUpdateRequest(BaseModel):
    """Request model for updating a formatting rule."""

    utility_type_id: int | None = None
    name: str | None = None
    operator: str | None = None
    threshold: Decimal | None = None
    color: str | None = None
    background_color: str | None = None
    priority: int | None = None
    enabled: bool | None = None


class EvaluateRequest(BaseModel):
    """Request model for evaluating rules against a value."""

    utility_type: str = Field(description="Utility type key")
    value: float | None = Field(description="Current value")
    average: float | None = Field(description="Trailing 12-month average")


def _rule_to_response(rule: UtilityFormattingRule) -> dict[str, Any]:
    return {
        "id": rule.id,
        "utility_type_id": rule.utility_type_id,
        "name": rule.name,
        "operator": rule.operator,
        "operator_label": rule.operator_label,
        "threshold": float(rule.threshold),
        "color": rule.color,
        "background_color": rule.background_color,
        "priority": rule.priority,
        "enabled": rule.enabled,
    }


@router.get("", response_model=list[FormattingRuleResponse])
async def list_rules(
    db: DbSession,
    utility_type_id: Annotated[int | None, Query(description="Filter by type")] = None,
) -> list[dict[str, Any]]:
    """List formatting rules in evaluation order."""
    rules = await FormattingRuleService(db).list_rules(utility_type_id)
    return [_rule_to_response(rule) for rule in rules]


@router.post(
    "", response_model=FormattingRuleResponse, status_code=status.HTTP_201_CREATED
)
async def create_rule(
    request: FormattingRuleCreateRequest, db: DbSession
) -> dict[str, Any]:
    """Create a formatting rule."""
    rule = await FormattingRuleService(db).create(**request.model_dump())
    return _rule_to_response(rule)


@router.patch("/{rule_id}", response_model=FormattingRuleResponse)
async def update_rule(
    rule_id: int, request: FormattingRuleUpdateRequest, db: DbSession
) -> dict[str, Any]:
    """Update a formatting rule. Fields left out are unchanged."""
    rule = await FormattingRuleService(db).update(
        rule_id, **request.model_dump(exclude_unset=True)
    )
    return _rule_to_response(rule)


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(rule_id: int, db: DbSession) -> None:
    """Delete a formatting rule."""
    await FormattingRuleService(db).delete(rule_id)


@router.post("/evaluate")
async def evaluate(request: EvaluateRequest, db: DbSession) -> dict[str, Any]:
    """Get the formatting a value would receive for a utility type."""
    formatting = await UtilityFormattingService(db).get_formatting(
        request.utility_type, request.value, request.average
    )
    return {"formatting": formatting}
