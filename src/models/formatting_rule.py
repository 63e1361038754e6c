# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""UtilityFormattingRule model for conditional cost formatting."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database import Base, utc_now

if TYPE_CHECKING:
    from src.models.utility_type import UtilityType

OPERATOR_INCREASE = "increase_percent"
OPERATOR_DECREASE = "decrease_percent"

OPERATORS: dict[str, str] = {
    OPERATOR_INCREASE: "Increase % over average",
    OPERATOR_DECREASE: "Decrease % below average",
}


class UtilityFormattingRule(Base):
    """Rule that highlights a cost compared to its trailing 12-month average.

    Rules are evaluated per utility type in descending priority. Creation
    order (primary key) breaks priority ties.
    """

    __tablename__ = "utility_formatting_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    utility_type_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("utility_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    operator: Mapped[str] = mapped_column(String(30), nullable=False)
    threshold: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False)
    background_color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    utility_type: Mapped["UtilityType"] = relationship(
        back_populates="formatting_rules", lazy="joined"
    )

    @property
    def operator_label(self) -> str:
        """Get the human-readable operator label."""
        return OPERATORS.get(self.operator, self.operator)

    def matches(self, value: float, average: float) -> bool:
        """Check whether this rule matches a value against an average.

        Args:
            value: Current value.
            average: Trailing 12-month average.

        Returns:
            True if the percent change satisfies the rule's condition.
            Always False when the average is zero or negative.
        """
        if average <= 0:
            return False

        percent_change = (value - average) / average * 100
        threshold = float(self.threshold)

        if self.operator == OPERATOR_INCREASE:
            return percent_change >= threshold
        if self.operator == OPERATOR_DECREASE:
            return percent_change <= -threshold
        return False

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<UtilityFormattingRule(id={self.id}, name={self.name}, "
            f"priority={self.priority}, enabled={self.enabled})>"
        )
