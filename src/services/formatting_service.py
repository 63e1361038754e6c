# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Conditional formatting of utility costs against trailing averages.

Rules compare a value to its trailing 12-month average. For each utility
type the enabled rules are tried in descending priority (creation order
breaks ties) and the first match decides the cell's colors.
"""

import logging
import re
from collections.abc import Iterable, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import NotFoundError, ValidationError
from src.models.formatting_rule import OPERATORS, UtilityFormattingRule
from src.repositories.formatting_rule_repository import FormattingRuleRepository
from src.repositories.utility_type_repository import UtilityTypeRepository

logger = logging.getLogger(__name__)

# Value columns compared against the 12-month average column
FORMATTED_COLUMNS = ("current_month", "prev_month", "prev_3_months")
AVERAGE_COLUMN = "prev_12_months"

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
MAX_THRESHOLD = Decimal("1000")
MAX_PRIORITY = 100
MAX_NAME_LENGTH = 100


def _evaluation_order(rules: Iterable[UtilityFormattingRule]) -> list[UtilityFormattingRule]:
    enabled = [rule for rule in rules if rule.enabled]
    # sorted() is stable, so unsaved rules keep their given order
    return sorted(
        enabled,
        key=lambda rule: (-(rule.priority or 0), rule.id is None, rule.id or 0),
    )


def evaluate_rules(
    rules: Iterable[UtilityFormattingRule],
    value: float | None,
    average: float | None,
) -> dict[str, Any] | None:
    """Pick the formatting for a value compared to its average.

    Args:
        rules: Candidate rules of one utility type, in any order.
        value: Current value.
        average: Trailing 12-month average.

    Returns:
        ``{color, background_color, rule_name}`` of the first matching
        enabled rule, or None when nothing matches or the average is
        missing, zero or negative.
    """
    if value is None or average is None or average <= 0:
        return None

    for rule in _evaluation_order(rules):
        if rule.matches(float(value), float(average)):
            return {
                "color": rule.color,
                "background_color": rule.background_color,
                "rule_name": rule.name,
            }
    return None


class UtilityFormattingService:
    """Apply stored formatting rules to comparison rows.

    Rules are loaded once per utility type and cached for the lifetime of
    the service instance, which is one request.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service.

        Args:
            session: Async database session.
        """
        self._repo = FormattingRuleRepository(session)
        self._rules_cache: dict[str, Sequence[UtilityFormattingRule]] = {}

    async def _rules_for(self, type_key: str) -> Sequence[UtilityFormattingRule]:
        if type_key not in self._rules_cache:
            self._rules_cache[type_key] = await self._repo.get_enabled_for_type_key(type_key)
        return self._rules_cache[type_key]

    async def get_formatting(
        self, type_key: str, value: float | None, average: float | None
    ) -> dict[str, Any] | None:
        """Get formatting for a value of a utility type.

        Args:
            type_key: Utility type key.
            value: Current value.
            average: Trailing 12-month average.

        Returns:
            Formatting dict or None.
        """
        if value is None or average is None or average <= 0:
            return None
        return evaluate_rules(await self._rules_for(type_key), value, average)

    async def apply_formatting_to_row(
        self, row: dict[str, Any], type_key: str
    ) -> dict[str, Any]:
        """Attach formatting for the value columns of one property row.

        Args:
            row: Row with current_month, prev_month, prev_3_months and
                prev_12_months.
            type_key: Utility type key.

        Returns:
            Copy of the row, with a ``formatting`` mapping of column to
            formatting when at least one column matched.
        """
        average = row.get(AVERAGE_COLUMN)
        formatting = {}
        for column in FORMATTED_COLUMNS:
            column_formatting = await self.get_formatting(type_key, row.get(column), average)
            if column_formatting is not None:
                formatting[column] = column_formatting

        formatted = dict(row)
        if formatting:
            formatted["formatting"] = formatting
        return formatted

    async def apply_formatting_to_comparison(
        self, comparison: dict[str, Any], type_key: str
    ) -> dict[str, Any]:
        """Apply formatting to every property row of a comparison."""
        result = dict(comparison)
        result["properties"] = [
            await self.apply_formatting_to_row(row, type_key)
            for row in comparison.get("properties", [])
        ]
        return result

    def clear_cache(self) -> None:
        """Drop cached rules, e.g. after rules changed mid-request."""
        self._rules_cache = {}


def _validate_rule_fields(fields: dict[str, Any]) -> dict[str, Any]:
    cleaned = dict(fields)

    if "name" in cleaned:
        name = (cleaned["name"] or "").strip()
        if not name:
            raise ValidationError("Name is required", field="name")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(
                f"Name must be at most {MAX_NAME_LENGTH} characters", field="name"
            )
        cleaned["name"] = name

    if "operator" in cleaned and cleaned["operator"] not in OPERATORS:
        allowed = ", ".join(OPERATORS)
        raise ValidationError(f"Operator must be one of: {allowed}", field="operator")

    if "threshold" in cleaned:
        try:
            threshold = Decimal(str(cleaned["threshold"]))
        except InvalidOperation as e:
            raise ValidationError("Threshold must be a number", field="threshold") from e
        if not threshold.is_finite() or threshold < 0 or threshold > MAX_THRESHOLD:
            raise ValidationError(
                f"Threshold must be between 0 and {MAX_THRESHOLD}", field="threshold"
            )
        cleaned["threshold"] = threshold

    if "color" in cleaned and not HEX_COLOR.match(cleaned["color"] or ""):
        raise ValidationError(
            "The color must be a valid hex color code (e.g., #FF0000).", field="color"
        )

    background = cleaned.get("background_color")
    if background is not None and not HEX_COLOR.match(background):
        raise ValidationError(
            "The background color must be a valid hex color code (e.g., #FF0000).",
            field="background_color",
        )

    if "priority" in cleaned:
        priority = cleaned["priority"]
        if priority is None:
            cleaned["priority"] = 0
        elif isinstance(priority, bool) or not isinstance(priority, int) or not (
            0 <= priority <= MAX_PRIORITY
        ):
            raise ValidationError(
                f"Priority must be an integer between 0 and {MAX_PRIORITY}",
                field="priority",
            )

    return cleaned


class FormattingRuleService:
    """CRUD for formatting rules with request validation."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service.

        Args:
            session: Async database session.
        """
        self._repo = FormattingRuleRepository(session)
        self._type_repo = UtilityTypeRepository(session)

    async def list_rules(self, utility_type_id: int | None = None) -> list[UtilityFormattingRule]:
        """List rules in evaluation order."""
        return list(await self._repo.get_all(utility_type_id))

    async def get(self, rule_id: int) -> UtilityFormattingRule:
        """Get a rule by ID.

        Raises:
            NotFoundError: If no such rule exists.
        """
        rule = await self._repo.get_by_id(rule_id)
        if rule is None:
            raise NotFoundError(f"Formatting rule {rule_id} not found", field="id")
        return rule

    async def create(
        self,
        utility_type_id: int,
        name: str,
        operator: str,
        threshold: float | Decimal | str,
        color: str,
        background_color: str | None = None,
        priority: int | None = 0,
        enabled: bool = True,
    ) -> UtilityFormattingRule:
        """Create a formatting rule.

        Raises:
            ValidationError: If any field is invalid.
            NotFoundError: If the utility type does not exist.
        """
        fields = _validate_rule_fields(
            {
                "name": name,
                "operator": operator,
                "threshold": threshold,
                "color": color,
                "background_color": background_color,
                "priority": priority,
            }
        )
        if await self._type_repo.get_by_id(utility_type_id) is None:
            raise NotFoundError(
                f"Utility type {utility_type_id} not found", field="utility_type_id"
            )

        rule = await self._repo.create(
            UtilityFormattingRule(utility_type_id=utility_type_id, enabled=enabled, **fields)
        )
        logger.info("Created formatting rule '%s' (priority %d)", rule.name, rule.priority)
        return rule

    async def update(self, rule_id: int, **changes: Any) -> UtilityFormattingRule:
        """Update fields of a formatting rule.

        Args:
            rule_id: Rule ID.
            **changes: Fields to change; None values are ignored except
                for background_color, which may be cleared.

        Raises:
            NotFoundError: If the rule or new utility type does not exist.
            ValidationError: If any field is invalid.
        """
        rule = await self.get(rule_id)
        allowed = {
            "utility_type_id",
            "name",
            "operator",
            "threshold",
            "color",
            "background_color",
            "priority",
            "enabled",
        }
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        updates = {
            k: v for k, v in changes.items() if v is not None or k == "background_color"
        }
        fields = _validate_rule_fields(updates)

        type_id = fields.get("utility_type_id")
        if type_id is not None and await self._type_repo.get_by_id(type_id) is None:
            raise NotFoundError(f"Utility type {type_id} not found", field="utility_type_id")

        for key, value in fields.items():
            setattr(rule, key, value)
        return await self._repo.update(rule)

    async def delete(self, rule_id: int) -> None:
        """Delete a formatting rule.

        Raises:
            NotFoundError: If no such rule exists.
        """
        rule = await self.get(rule_id)
        await self._repo.delete(rule)
        logger.info("Deleted formatting rule '%s'", rule.name)
