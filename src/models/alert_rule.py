# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""AlertRule model for threshold-based operational alerts."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, Boolean, DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from src.database import Base, utc_now

ALERT_OPERATORS: dict[str, str] = {
    "gt": "Greater than",
    "gte": "Greater than or equal",
    "lt": "Less than",
    "lte": "Less than or equal",
    "eq": "Equal to",
}

ALERT_METRICS: dict[str, str] = {
    "vacancy_count": "Vacancy Count",
    "delinquency_amount": "Delinquency Amount",
    "work_order_days_open": "Work Order Days Open",
    "occupancy_rate": "Occupancy Rate",
}


class AlertRule(Base):
    """Threshold rule evaluated against a live metric snapshot."""

    __tablename__ = "alert_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    metric: Mapped[str] = mapped_column(String(50), nullable=False)
    operator: Mapped[str] = mapped_column(String(10), nullable=False)
    threshold: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    recipients: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    last_triggered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    @property
    def operator_label(self) -> str:
        """Get the human-readable operator."""
        return ALERT_OPERATORS.get(self.operator, self.operator)

    @property
    def metric_label(self) -> str:
        """Get the human-readable metric."""
        return ALERT_METRICS.get(self.metric, self.metric)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<AlertRule(name={self.name}, metric={self.metric}, enabled={self.enabled})>"
