# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Alert rule API endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from src.api.dependencies import DbSession
from src.models.alert_rule import AlertRule
from src.services.alert_service import AlertService, build_alert_message

router = APIRouter(prefix="/api/alert-rules", tags=["Alert Rules"])


class AlertRuleResponse(BaseModel):
    """Response model for an alert rule."""

    id: int
    name: str
    metric: str
    metric_label: str
    operator: str
    operator_label: str
    threshold: float
    enabled: bool
    recipients: list[str]
    last_triggered_at: datetime | None = None


class AlertRuleCreateRequest(BaseModel):
    """Request model for creating an alert rule."""

    name: str = Field(description="Unique rule name")
    metric: str = Field(description="Metric key")
    operator: str = Field(description="gt, gte, lt, lte or eq")
    threshold: Decimal = Field(description="Threshold value")
    recipients: list[str] = Field(default_factory=list, description="Email recipients")
    enabled: bool = Field(default=True, description="Whether the rule is evaluated")


class EvaluateRequest(BaseModel):
    """Request model for evaluating rules against current metrics."""

    metrics: dict[str, float] = Field(description="Metric key to current value")


def _rule_to_response(rule: AlertRule) -> dict[str, Any]:
    return {
        "id": rule.id,
        "name": rule.name,
        "metric": rule.metric,
        "metric_label": rule.metric_label,
        "operator": rule.operator,
        "operator_label": rule.operator_label,
        "threshold": float(rule.threshold),
        "enabled": rule.enabled,
        "recipients": rule.recipients or [],
        "last_triggered_at": rule.last_triggered_at,
    }


@router.get("", response_model=list[AlertRuleResponse])
async def list_rules(db: DbSession) -> list[dict[str, Any]]:
    """List alert rules."""
    return [_rule_to_response(rule) for rule in await AlertService(db).list_rules()]


@router.post("", response_model=AlertRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_rule(request: AlertRuleCreateRequest, db: DbSession) -> dict[str, Any]:
    """Create an alert rule."""
    rule = await AlertService(db).create(**request.model_dump())
    return _rule_to_response(rule)


@router.post("/evaluate")
async def evaluate(request: EvaluateRequest, db: DbSession) -> dict[str, Any]:
    """Evaluate enabled rules against the given metric values."""
    triggered = await AlertService(db).evaluate(request.metrics)
    return {
        "triggered": [
            {
                **_rule_to_response(rule),
                "current_value": request.metrics[rule.metric],
                "message": build_alert_message(rule, request.metrics[rule.metric]),
            }
            for rule in triggered
        ],
        "total": len(triggered),
    }
