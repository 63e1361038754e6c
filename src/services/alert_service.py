# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Threshold alert rules evaluated against a metric snapshot."""

import logging
import re
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import DuplicateKeyError, NotFoundError, ValidationError
from src.models.alert_rule import ALERT_METRICS, ALERT_OPERATORS, AlertRule
from src.repositories.alert_rule_repository import AlertRuleRepository
from src.services.settings_store import SettingsStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")
MAX_NAME_LENGTH = 100

COMPARISON_TEXT = {
    "gt": "greater than",
    "gte": "at or above",
    "lt": "less than",
    "lte": "at or below",
    "eq": "equal to",
}

ALERT_MESSAGES = {
    "vacancy_count": (
        "Your portfolio currently has {value} vacant units, which is {comparison} "
        "your threshold of {threshold}."
    ),
    "delinquency_amount": (
        "The total delinquency amount is now {value}, which is {comparison} "
        "your threshold of {threshold}."
    ),
    "occupancy_rate": (
        "Your occupancy rate is currently at {value}, which is {comparison} "
        "your target of {threshold}."
    ),
    "work_order_days_open": (
        "You have work orders that have been open for {value}, which is "
        "{comparison} your threshold of {threshold}."
    ),
}


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        number = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(f"{field} must be a number", field=field) from e
    if not number.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    return number


def evaluate_rule(rule: AlertRule, value: float | Decimal) -> bool:
    """Check whether a metric value trips a rule.

    Args:
        rule: Rule with operator and threshold.
        value: Current metric value.

    Returns:
        True when the comparison holds; False for unknown operators.

    Raises:
        ValidationError: If the value is not a finite number.
    """
    current = _to_decimal(value, "metrics")
    threshold = Decimal(str(rule.threshold))
    match rule.operator:
        case "gt":
            return current > threshold
        case "gte":
            return current >= threshold
        case "lt":
            return current < threshold
        case "lte":
            return current <= threshold
        case "eq":
            return current == threshold
    return False


def format_metric_value(metric: str, value: float | Decimal) -> str:
    """Format a metric value for display."""
    number = float(value)
    if metric == "delinquency_amount":
        return f"${number:,.2f}"
    if metric == "occupancy_rate":
        return f"{number:.1f}%"
    if metric == "work_order_days_open":
        return f"{int(number)} days"
    return str(int(number))


def build_alert_message(rule: AlertRule, value: float | Decimal) -> str:
    """Build the human-readable message for a triggered rule."""
    formatted_value = format_metric_value(rule.metric, value)
    formatted_threshold = format_metric_value(rule.metric, rule.threshold)
    template = ALERT_MESSAGES.get(rule.metric)
    if template is None:
        return (
            f"Alert: {rule.name} has been triggered. Current value: "
            f"{formatted_value}, Threshold: {formatted_threshold}."
        )
    return template.format(
        value=formatted_value,
        threshold=formatted_threshold,
        comparison=COMPARISON_TEXT.get(rule.operator, "compared to"),
    )


class AlertService:
    """Manage alert rules and evaluate them against metric snapshots."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service.

        Args:
            session: Async database session.
        """
        self._repo = AlertRuleRepository(session)
        self._store = SettingsStore(session)

    async def list_rules(self) -> list[AlertRule]:
        """List all rules ordered by name."""
        return list(await self._repo.get_all())

    async def get(self, rule_id: int) -> AlertRule:
        """Get a rule by ID.

        Raises:
            NotFoundError: If no such rule exists.
        """
        rule = await self._repo.get_by_id(rule_id)
        if rule is None:
            raise NotFoundError(f"Alert rule {rule_id} not found", field="id")
        return rule

    @staticmethod
    def _validate(
        name: str,
        metric: str,
        operator: str,
        threshold: Any,
        recipients: list[str] | None,
    ) -> tuple[str, Decimal, list[str]]:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required", field="name")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(
                f"Name must be at most {MAX_NAME_LENGTH} characters", field="name"
            )
        if metric not in ALERT_METRICS:
            raise ValidationError(
                f"Metric must be one of: {', '.join(ALERT_METRICS)}", field="metric"
            )
        if operator not in ALERT_OPERATORS:
            raise ValidationError(
                f"Operator must be one of: {', '.join(ALERT_OPERATORS)}", field="operator"
            )
        number = _to_decimal(threshold, "threshold")

        cleaned = []
        for address in recipients or []:
            address = (address or "").strip()
            if not EMAIL_PATTERN.match(address):
                raise ValidationError(
                    f"Invalid recipient email address: {address!r}", field="recipients"
                )
            cleaned.append(address)
        return name, number, cleaned

    async def create(
        self,
        name: str,
        metric: str,
        operator: str,
        threshold: float | Decimal | str,
        recipients: list[str] | None = None,
        enabled: bool = True,
    ) -> AlertRule:
        """Create an alert rule.

        Raises:
            ValidationError: If any field is invalid.
            DuplicateKeyError: If a rule with the name exists.
        """
        name, number, cleaned = self._validate(name, metric, operator, threshold, recipients)
        if await self._repo.get_by_name(name) is not None:
            raise DuplicateKeyError(f"Alert rule '{name}' already exists", field="name")

        rule = AlertRule(
            name=name,
            metric=metric,
            operator=operator,
            threshold=number,
            recipients=cleaned,
            enabled=enabled,
        )
        try:
            created = await self._repo.create(rule)
        except IntegrityError as e:
            raise DuplicateKeyError(
                f"Alert rule '{name}' already exists", field="name"
            ) from e
        logger.info("Created alert rule '%s'", name)
        return created

    async def set_enabled(self, rule_id: int, enabled: bool) -> AlertRule:
        """Enable or disable a rule."""
        rule = await self.get(rule_id)
        rule.enabled = enabled
        return await self._repo.update(rule)

    async def delete(self, rule_id: int) -> None:
        """Delete a rule.

        Raises:
            NotFoundError: If no such rule exists.
        """
        rule = await self.get(rule_id)
        await self._repo.delete(rule)
        logger.info("Deleted alert rule '%s'", rule.name)

    async def evaluate(
        self, snapshot: dict[str, float], now: datetime | None = None
    ) -> list[AlertRule]:
        """Evaluate enabled rules against current metric values.

        Rules whose metric is missing from the snapshot are skipped.
        Triggered rules get ``last_triggered_at`` set.

        Args:
            snapshot: Metric name to current value.
            now: Trigger time, defaults to now.

        Returns:
            Triggered rules, empty when notifications are disabled.

        Raises:
            ValidationError: If a snapshot value is not a finite number.
        """
        for metric, value in snapshot.items():
            try:
                _to_decimal(value, "metrics")
            except ValidationError as e:
                raise ValidationError(
                    f"Metric '{metric}' must be a finite number", field="metrics"
                ) from e

        if not await self._store.is_feature_enabled("notifications", True):
            logger.info("Notifications are disabled via feature flag")
            return []

        triggered = []
        for rule in await self._repo.get_all(enabled_only=True):
            if rule.metric not in snapshot:
                logger.debug("No value for metric %s, skipping '%s'", rule.metric, rule.name)
                continue

            value = snapshot[rule.metric]
            if not evaluate_rule(rule, value):
                continue

            logger.info(
                "Alert triggered: %s (metric=%s, threshold=%s, current=%s)",
                rule.name,
                rule.metric,
                rule.threshold,
                value,
            )
            if not rule.recipients:
                logger.warning("No recipients configured for alert rule '%s'", rule.name)

            rule.last_triggered_at = now or datetime.now(UTC)
            await self._repo.update(rule)
            triggered.append(rule)

        logger.info("Evaluated alert rules: %d triggered", len(triggered))
        return triggered
