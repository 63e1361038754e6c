# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for ExpenseRecord database operations."""

from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.expense_record import ExpenseRecord
from src.models.utility_account import UtilityAccount
from src.repositories.exclusion_repository import excluded_properties_query


class ExpenseRepository:
    """Repository for ingested expense records and their classification tags."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_external_ids(
        self, external_ids: Sequence[str]
    ) -> dict[str, ExpenseRecord]:
        """Get records by external expense ID in one query.

        Args:
            external_ids: External expense IDs.

        Returns:
            Mapping of external ID to record for the IDs that exist.
        """
        if not external_ids:
            return {}
        result = await self._session.execute(
            select(ExpenseRecord).where(
                ExpenseRecord.external_expense_id.in_(list(external_ids))
            )
        )
        return {record.external_expense_id: record for record in result.scalars()}

    async def get_in_range(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Sequence[ExpenseRecord]:
        """Get records, optionally limited to an expense-date range.

        Args:
            date_from: Inclusive lower bound on expense_date.
            date_to: Inclusive upper bound on expense_date.

        Returns:
            Records ordered by ID.
        """
        query = select(ExpenseRecord).order_by(ExpenseRecord.id)
        if date_from is not None:
            query = query.where(ExpenseRecord.expense_date >= date_from)
        if date_to is not None:
            query = query.where(ExpenseRecord.expense_date <= date_to)
        result = await self._session.execute(query)
        return result.scalars().all()

    async def add(self, record: ExpenseRecord) -> ExpenseRecord:
        """Stage a new record and flush it.

        Args:
            record: ExpenseRecord to insert.

        Returns:
            Inserted record with ID.
        """
        self._session.add(record)
        await self._session.flush()
        return record

    async def count_unmapped(
        self, window_days: int, now: datetime | None = None
    ) -> list[tuple[str, int]]:
        """Count recent records whose GL account has no active mapping.

        Args:
            window_days: Only records pulled within this many days count.
            now: Reference time, defaults to the current UTC time.

        Returns:
            (gl_account_number, occurrence_count) ordered by count
            descending, then account number ascending.
        """
        cutoff = (now or datetime.now(UTC)) - timedelta(days=window_days)
        active_numbers = select(UtilityAccount.gl_account_number).where(
            UtilityAccount.is_active.is_(True)
        )
        occurrences = func.count(ExpenseRecord.id).label("occurrences")
        result = await self._session.execute(
            select(ExpenseRecord.gl_account_number, occurrences)
            .where(
                ExpenseRecord.pulled_at >= cutoff,
                ExpenseRecord.gl_account_number.is_not(None),
                ExpenseRecord.gl_account_number != "",
                ExpenseRecord.gl_account_number.not_in(active_numbers),
            )
            .group_by(ExpenseRecord.gl_account_number)
            .order_by(occurrences.desc(), ExpenseRecord.gl_account_number.asc())
        )
        return [(number, count) for number, count in result.all()]

    async def monthly_totals(
        self, utility_type_id: int, start: date, end: date
    ) -> list[tuple[str, int, int, Decimal]]:
        """Sum classified amounts per property and calendar month.

        Properties excluded for the utility type are left out.

        Args:
            utility_type_id: Utility type the records are tagged with.
            start: Inclusive start date.
            end: Inclusive end date.

        Returns:
            (property_external_id, year, month, total) rows.
        """
        records = await self._session.execute(
            select(
                ExpenseRecord.property_external_id,
                ExpenseRecord.expense_date,
                ExpenseRecord.amount,
            ).where(
                ExpenseRecord.utility_type_id == utility_type_id,
                ExpenseRecord.property_external_id.is_not(None),
                ExpenseRecord.expense_date >= start,
                ExpenseRecord.expense_date <= end,
                ExpenseRecord.property_external_id.not_in(
                    excluded_properties_query(utility_type_id)
                ),
            )
        )
        totals: dict[tuple[str, int, int], Decimal] = {}
        for property_id, expense_date, amount in records:
            bucket = (property_id, expense_date.year, expense_date.month)
            totals[bucket] = totals.get(bucket, Decimal("0")) + (amount or Decimal("0"))
        return [(p, y, m, total) for (p, y, m), total in sorted(totals.items())]
