# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Expense ingestion, utility classification and reprocessing."""

import logging
import re
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import NotFoundError, ValidationError
from src.models.expense_record import ExpenseRecord
from src.repositories.exclusion_repository import ExclusionRepository
from src.repositories.expense_repository import ExpenseRepository
from src.repositories.utility_account_repository import UtilityAccountRepository
from src.repositories.utility_type_repository import UtilityTypeRepository

logger = logging.getLogger(__name__)

# Payload field aliases, first present wins
GL_ACCOUNT_FIELDS = (
    "gl_account_number",
    "gl_account",
    "expense_account",
    "account_number",
    "account",
)
AMOUNT_FIELDS = ("amount", "total")
EXPENSE_DATE_FIELDS = ("expense_date", "bill_date", "date")
PERIOD_START_FIELDS = ("period_start", "service_start")
PERIOD_END_FIELDS = ("period_end", "service_end")
VENDOR_FIELDS = ("vendor_name", "vendor", "payee")
DESCRIPTION_FIELDS = ("description", "memo")

CENTS = Decimal("0.01")


def _first(payload: dict[str, Any], fields: tuple[str, ...]) -> Any:
    for field in fields:
        value = payload.get(field)
        if value is not None:
            return value
    return None


def normalize_gl_account(value: Any) -> str | None:
    """Normalize a GL account number for matching.

    Args:
        value: Raw account number, possibly numeric or padded.

    Returns:
        Stripped string, or None when empty.
    """
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_gl_account(payload: dict[str, Any]) -> str | None:
    """Extract the GL account number from an expense payload.

    The account may sit under several field names or inside a nested
    object with a ``number``/``account_number`` entry.

    Args:
        payload: Raw expense payload.

    Returns:
        Normalized GL account number, or None.
    """
    account = _first(payload, GL_ACCOUNT_FIELDS)
    if isinstance(account, dict):
        account = account.get("number") or account.get("account_number")
    return normalize_gl_account(account)


def extract_gl_account_name(payload: dict[str, Any]) -> str | None:
    """Extract a GL account name when the payload carries one."""
    name = payload.get("gl_account_name")
    if name is None:
        account = _first(payload, GL_ACCOUNT_FIELDS)
        if isinstance(account, dict):
            name = account.get("name")
    return str(name) if name is not None else None


def parse_amount(value: Any) -> Decimal:
    """Parse an amount into an absolute two-place Decimal.

    Currency symbols and thousands separators are stripped from strings.

    Args:
        value: Raw amount.

    Returns:
        Absolute amount rounded to cents.

    Raises:
        ValidationError: If the value cannot be read as a number.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0.00")
    if isinstance(value, str):
        value = re.sub(r"[^0-9.\-]", "", value)
        if not value:
            return Decimal("0.00")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount '{value}'", field="amount") from e
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount '{value}'", field="amount")
    return abs(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_date(value: Any) -> date | None:
    """Parse an ISO date or datetime, returning None when unreadable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.debug("Unparseable date %r", value)
        return None


def _parse_iso(value: str | None, field: str) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"{field} must be YYYY-MM-DD", field=field) from e


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


class ExpenseService:
    """Ingest raw expense payloads and keep their utility tags current.

    Classification always uses active GL account mappings. Tags are only
    recomputed on ingest or by an explicit reprocess run, so deleting or
    deactivating a mapping leaves earlier tags in place until then.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service.

        Args:
            session: Async database session.
        """
        self._session = session
        self._expense_repo = ExpenseRepository(session)
        self._account_repo = UtilityAccountRepository(session)
        self._type_repo = UtilityTypeRepository(session)
        self._exclusion_repo = ExclusionRepository(session)

    async def ingest(self, payloads: list[dict[str, Any]]) -> dict[str, Any]:
        """Store expense payloads and tag them with their utility type.

        Records are upserted by external expense ID. A payload that fails
        to parse is reported in ``error_details`` and does not stop the
        batch.

        Args:
            payloads: Raw expense payloads from the property-management API.

        Returns:
            Dict with counts: created, updated, skipped, unmatched, errors,
            plus error_details.
        """
        mappings = await self._account_repo.get_active_type_map()
        external_ids = [
            str(p.get("expense_id") or p.get("id"))
            for p in payloads
            if isinstance(p, dict) and (p.get("expense_id") or p.get("id"))
        ]
        existing = await self._expense_repo.get_by_external_ids(external_ids)

        stats: dict[str, Any] = {
            "created": 0,
            "updated": 0,
            "skipped": 0,
            "unmatched": 0,
            "errors": 0,
            "error_details": [],
        }
        pulled_at = datetime.now(UTC)

        for payload in payloads:
            if not isinstance(payload, dict):
                kind = type(payload).__name__
                stats["errors"] += 1
                stats["error_details"].append(
                    {"expense_id": None, "error": f"Expected an object, got {kind}"}
                )
                logger.error("Skipping malformed expense payload of type %s", kind)
                continue

            external_id = payload.get("expense_id") or payload.get("id")
            if not external_id:
                stats["skipped"] += 1
                continue
            external_id = str(external_id)

            try:
                async with self._session.begin_nested():
                    record = existing.get(external_id)
                    is_new = record is None
                    if record is None:
                        record = ExpenseRecord(external_expense_id=external_id)
                    self._apply_payload(record, payload)
                    record.pulled_at = pulled_at
                    record.utility_type_id = mappings.get(record.gl_account_number or "")
                    if is_new:
                        await self._expense_repo.add(record)
                        existing[external_id] = record
                    else:
                        await self._session.flush()
            except Exception as e:
                stats["errors"] += 1
                stats["error_details"].append({"expense_id": external_id, "error": str(e)})
                logger.error("Failed to ingest expense %s: %s", external_id, e)
                continue

            stats["created" if is_new else "updated"] += 1
            if record.gl_account_number and record.utility_type_id is None:
                stats["unmatched"] += 1
                logger.debug(
                    "Expense %s GL account %s not mapped to a utility type",
                    external_id,
                    record.gl_account_number,
                )

        logger.info(
            "Expense ingest complete: %d created, %d updated, %d skipped, "
            "%d unmatched, %d errors",
            stats["created"],
            stats["updated"],
            stats["skipped"],
            stats["unmatched"],
            stats["errors"],
        )
        return stats

    @staticmethod
    def _apply_payload(record: ExpenseRecord, payload: dict[str, Any]) -> None:
        record.amount = parse_amount(_first(payload, AMOUNT_FIELDS))
        record.gl_account_number = extract_gl_account(payload)
        record.gl_account_name = extract_gl_account_name(payload)
        property_id = payload.get("property_id")
        if property_id is None and isinstance(payload.get("property"), dict):
            property_id = payload["property"].get("id")
        record.property_external_id = str(property_id) if property_id is not None else None
        record.expense_date = parse_date(_first(payload, EXPENSE_DATE_FIELDS))
        record.period_start = parse_date(_first(payload, PERIOD_START_FIELDS))
        record.period_end = parse_date(_first(payload, PERIOD_END_FIELDS))
        vendor = _first(payload, VENDOR_FIELDS)
        record.vendor_name = str(vendor) if vendor is not None else None
        description = _first(payload, DESCRIPTION_FIELDS)
        record.description = str(description) if description is not None else None

    async def reprocess(
        self,
        date_from: date | str | None = None,
        date_to: date | str | None = None,
    ) -> dict[str, Any]:
        """Recompute utility tags of stored records from current mappings.

        Nothing is fetched from the external source. Records whose GL
        account has no active mapping lose their tag. Running it twice
        with no mapping changes yields the same tags.

        Args:
            date_from: Inclusive lower bound on expense date.
            date_to: Inclusive upper bound on expense date.

        Returns:
            Dict with counts: processed, reclassified, classified, cleared,
            unchanged, errors, plus error_details.

        Raises:
            ValidationError: If a date bound is not YYYY-MM-DD.
        """
        if isinstance(date_from, str):
            date_from = _parse_iso(date_from, "date_from")
        if isinstance(date_to, str):
            date_to = _parse_iso(date_to, "date_to")
        if date_from and date_to and date_from > date_to:
            raise ValidationError("date_from must not be after date_to", field="date_from")

        mappings = await self._account_repo.get_active_type_map()
        records = await self._expense_repo.get_in_range(date_from, date_to)

        stats: dict[str, Any] = {
            "processed": 0,
            "reclassified": 0,
            "classified": 0,
            "cleared": 0,
            "unchanged": 0,
            "errors": 0,
            "error_details": [],
        }

        for record in records:
            stats["processed"] += 1
            external_id = record.external_expense_id
            try:
                gl_account = normalize_gl_account(record.gl_account_number)
                new_type_id = mappings.get(gl_account) if gl_account else None
                changed = record.utility_type_id != new_type_id
                if changed:
                    async with self._session.begin_nested():
                        record.utility_type_id = new_type_id
                        await self._session.flush()
            except Exception as e:
                stats["errors"] += 1
                stats["error_details"].append({"expense_id": external_id, "error": str(e)})
                logger.error("Failed to reclassify expense %s: %s", external_id, e)
                continue

            if new_type_id is not None:
                stats["classified"] += 1

            if not changed:
                stats["unchanged"] += 1
                continue

            if new_type_id is None:
                stats["cleared"] += 1
            stats["reclassified"] += 1

        logger.info(
            "Utility reprocess complete: %d processed, %d reclassified, "
            "%d cleared, %d errors",
            stats["processed"],
            stats["reclassified"],
            stats["cleared"],
            stats["errors"],
        )
        return stats

    async def classification_snapshot(self) -> dict[str, int | None]:
        """Get the current tag of every record.

        Returns:
            Mapping of external expense ID to utility type ID or None.
        """
        records = await self._expense_repo.get_in_range()
        return {r.external_expense_id: r.utility_type_id for r in records}

    async def build_property_comparison(
        self, type_key: str, as_of: date | None = None
    ) -> dict[str, Any]:
        """Build per-property cost comparison data for one utility type.

        Monthly columns are calendar-month totals. ``prev_3_months`` and
        ``prev_12_months`` are monthly averages over the full months before
        the current one. Zero totals are reported as None. Properties
        excluded for the utility type are left out and listed under
        ``excluded_properties``.

        Args:
            type_key: Utility type key.
            as_of: Reference date, defaults to today (UTC).

        Returns:
            Dict with ``properties`` rows and ``property_count``.

        Raises:
            NotFoundError: If the utility type does not exist.
        """
        utility_type = await self._type_repo.get_by_key(type_key)
        if utility_type is None:
            raise NotFoundError(f"Utility type '{type_key}' not found", field="utility_type")

        as_of = as_of or datetime.now(UTC).date()
        year, month = as_of.year, as_of.month
        start_year, start_month = _shift_month(year, month, -12)
        rows = await self._expense_repo.monthly_totals(
            utility_type.id,
            date(start_year, start_month, 1),
            as_of,
        )

        by_property: dict[str, dict[tuple[int, int], Decimal]] = {}
        for property_id, y, m, total in rows:
            by_property.setdefault(property_id, {})[(y, m)] = total

        prev_month = _shift_month(year, month, -1)
        prev_3 = [_shift_month(year, month, -i) for i in range(1, 4)]
        prev_12 = [_shift_month(year, month, -i) for i in range(1, 13)]

        def _money(value: Decimal) -> float | None:
            return float(value.quantize(CENTS, rounding=ROUND_HALF_UP)) if value > 0 else None

        properties = []
        for property_id in sorted(by_property):
            months = by_property[property_id]
            zero = Decimal("0")
            properties.append(
                {
                    "property_id": property_id,
                    "current_month": _money(months.get((year, month), zero)),
                    "prev_month": _money(months.get(prev_month, zero)),
                    "prev_3_months": _money(sum((months.get(k, zero) for k in prev_3), zero) / 3),
                    "prev_12_months": _money(
                        sum((months.get(k, zero) for k in prev_12), zero) / 12
                    ),
                }
            )

        excluded = await self._exclusion_repo.get_excluded_property_ids(type_key)
        return {
            "utility_type": type_key,
            "as_of": as_of.isoformat(),
            "properties": properties,
            "property_count": len(properties),
            "excluded_properties": excluded,
        }
