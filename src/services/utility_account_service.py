# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""GL account to utility type mapping management."""

import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import DuplicateAccountError, NotFoundError, ValidationError
from src.models.utility_account import UtilityAccount
from src.repositories.expense_repository import ExpenseRepository
from src.repositories.utility_account_repository import UtilityAccountRepository
from src.repositories.utility_type_repository import UtilityTypeRepository
from src.services.expense_service import ExpenseService, normalize_gl_account

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_WINDOW_DAYS = 90
MAX_GL_NUMBER_LENGTH = 50
MAX_GL_NAME_LENGTH = 255


def _validate_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("GL account name is required", field="gl_account_name")
    if len(name) > MAX_GL_NAME_LENGTH:
        raise ValidationError(
            f"GL account name must be at most {MAX_GL_NAME_LENGTH} characters",
            field="gl_account_name",
        )
    return name


class UtilityAccountService:
    """Map GL accounts to utility types, suggest and reprocess."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service.

        Args:
            session: Async database session.
        """
        self._session = session
        self._repo = UtilityAccountRepository(session)
        self._type_repo = UtilityTypeRepository(session)
        self._expense_repo = ExpenseRepository(session)

    async def list_accounts(self) -> list[UtilityAccount]:
        """List all mappings ordered by GL account number."""
        return list(await self._repo.get_all())

    async def get(self, account_id: int) -> UtilityAccount:
        """Get a mapping by ID.

        Raises:
            NotFoundError: If no such mapping exists.
        """
        account = await self._repo.get_by_id(account_id)
        if account is None:
            raise NotFoundError(f"Utility account {account_id} not found", field="id")
        return account

    async def _require_type(self, utility_type_id: int) -> None:
        if await self._type_repo.get_by_id(utility_type_id) is None:
            raise NotFoundError(
                f"Utility type {utility_type_id} not found", field="utility_type_id"
            )

    async def map(
        self,
        gl_account_number: str,
        gl_account_name: str,
        utility_type_id: int,
        is_active: bool = True,
    ) -> UtilityAccount:
        """Map a GL account to a utility type.

        Args:
            gl_account_number: General-ledger account number.
            gl_account_name: Account display name.
            utility_type_id: Target utility type ID.
            is_active: Whether the mapping takes part in classification.

        Returns:
            The created mapping.

        Raises:
            ValidationError: If the number or name is empty or too long.
            NotFoundError: If the utility type does not exist.
            DuplicateAccountError: If the GL account is already mapped.
        """
        number = normalize_gl_account(gl_account_number)
        if number is None:
            raise ValidationError(
                "GL account number is required", field="gl_account_number"
            )
        if len(number) > MAX_GL_NUMBER_LENGTH:
            raise ValidationError(
                f"GL account number must be at most {MAX_GL_NUMBER_LENGTH} characters",
                field="gl_account_number",
            )
        name = _validate_name(gl_account_name)
        await self._require_type(utility_type_id)

        duplicate_msg = (
            f"GL account {number} is already mapped; edit the existing mapping instead"
        )
        if await self._repo.get_by_gl_number(number) is not None:
            raise DuplicateAccountError(duplicate_msg, field="gl_account_number")

        account = UtilityAccount(
            gl_account_number=number,
            gl_account_name=name,
            utility_type_id=utility_type_id,
            is_active=is_active,
        )
        try:
            created = await self._repo.create(account)
        except IntegrityError as e:
            raise DuplicateAccountError(duplicate_msg, field="gl_account_number") from e

        logger.info("Mapped GL account %s to utility type %d", number, utility_type_id)
        return created

    async def update(
        self,
        account_id: int,
        gl_account_name: str | None = None,
        utility_type_id: int | None = None,
        is_active: bool | None = None,
    ) -> UtilityAccount:
        """Edit a mapping in place. The GL account number is fixed.

        Existing expense tags are not touched until a reprocess.

        Raises:
            NotFoundError: If the mapping or the new utility type is unknown.
            ValidationError: If the new name is empty.
        """
        account = await self.get(account_id)
        if gl_account_name is not None:
            account.gl_account_name = _validate_name(gl_account_name)
        if utility_type_id is not None:
            await self._require_type(utility_type_id)
            account.utility_type_id = utility_type_id
        if is_active is not None:
            account.is_active = is_active
        updated = await self._repo.update(account)
        logger.info("Updated utility account mapping %s", account.gl_account_number)
        return updated

    async def delete(self, account_id: int) -> None:
        """Delete a mapping.

        Expenses already tagged through it keep their tag until the next
        reprocess.

        Raises:
            NotFoundError: If the mapping does not exist.
        """
        account = await self.get(account_id)
        await self._repo.delete(account)
        logger.info("Deleted utility account mapping %s", account.gl_account_number)

    async def suggest_unmapped(
        self,
        window_days: int = DEFAULT_SUGGESTION_WINDOW_DAYS,
        now: datetime | None = None,
    ) -> list[tuple[str, int]]:
        """List GL accounts seen in recent expenses without an active mapping.

        Args:
            window_days: Look-back window on the record pull time.
            now: Reference time, defaults to now.

        Returns:
            (gl_account_number, occurrence_count) ordered by count
            descending, ties by account number ascending.

        Raises:
            ValidationError: If window_days is not positive.
        """
        if window_days < 1:
            raise ValidationError("window_days must be at least 1", field="days")
        return await self._expense_repo.count_unmapped(window_days, now=now)

    async def reprocess(
        self,
        date_from: date | str | None = None,
        date_to: date | str | None = None,
    ) -> dict[str, Any]:
        """Re-derive utility tags of stored expenses from current mappings.

        See ExpenseService.reprocess.
        """
        return await ExpenseService(self._session).reprocess(date_from, date_to)
