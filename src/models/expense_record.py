# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""ExpenseRecord model for ingested expense data."""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database import Base, utc_now

if TYPE_CHECKING:
    from src.models.utility_type import UtilityType


class ExpenseRecord(Base):
    """An expense pulled from the property-management API.

    The ``utility_type_id`` column is a derived classification tag. It is
    set from the active GL account mapping at ingest time and recomputed
    by a reprocess run; the remaining columns are source data at rest.
    """

    __tablename__ = "expense_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_expense_id: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True
    )
    property_external_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True, index=True
    )
    gl_account_number: Mapped[str | None] = mapped_column(
        String(50), nullable=True, index=True
    )
    gl_account_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    expense_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    period_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    period_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    vendor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    pulled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, index=True
    )
    utility_type_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("utility_types.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    utility_type: Mapped["UtilityType | None"] = relationship(lazy="joined")

    @property
    def is_utility_expense(self) -> bool:
        """Check if the record is currently classified as a utility expense."""
        return self.utility_type_id is not None

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<ExpenseRecord(external_id={self.external_expense_id}, "
            f"gl={self.gl_account_number}, type_id={self.utility_type_id})>"
        )
