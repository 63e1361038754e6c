# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""GL account mapping API endpoints."""

import logging
from datetime import date
from functools import partial
from typing import Annotated, Any

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import DbSession, Runner
from src.api.jobs import JobQueuedResponse
from src.config import get_settings
from src.exceptions import ValidationError
from src.models.utility_account import UtilityAccount
from src.services.utility_account_service import UtilityAccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/utility-accounts", tags=["Utility Accounts"])


class UtilityAccountResponse(BaseModel):
    """Response model for a GL account mapping."""

    id: int = Field(description="Mapping ID")
    gl_account_number: str = Field(description="GL account number")
    gl_account_name: str = Field(description="GL account name")
    utility_type_id: int = Field(description="Mapped utility type ID")
    utility_type_key: str | None = Field(default=None, description="Mapped utility type key")
    utility_type_label: str | None = Field(
        default=None, description="Mapped utility type label"
    )
    is_active: bool = Field(description="Whether the mapping classifies expenses")


class UtilityAccountsResponse(BaseModel):
    """Response model for the mapping collection."""

    accounts: list[UtilityAccountResponse] = Field(description="Mappings")
    total: int = Field(description="Total count")


class UtilityAccountCreateRequest(BaseModel):
    """Request model for mapping a GL account."""

    gl_account_number: str = Field(description="GL account number")
    gl_account_name: str = Field(description="GL account name")
    utility_type_id: int = Field(description="Utility type ID")
    is_active: bool = Field(default=True, description="Whether the mapping is active")


class UtilityAccountUpdateRequest(BaseModel):
    """Request model for editing a mapping."""

    gl_account_name: str | None = Field(default=None, description="GL account name")
    utility_type_id: int | None = Field(default=None, description="Utility type ID")
    is_active: bool | None = Field(default=None, description="Whether the mapping is active")


class SuggestionResponse(BaseModel):
    """Unmapped GL account seen in recent expenses."""

    gl_account_number: str = Field(description="GL account number")
    occurrences: int = Field(description="Number of recent expenses")


class ReprocessRequest(BaseModel):
    """Request model for a reprocess run."""

    date_from: date | None = Field(default=None, description="Inclusive start date")
    date_to: date | None = Field(default=None, description="Inclusive end date")


def _account_to_response(account: UtilityAccount) -> dict[str, Any]:
    utility_type = account.utility_type
    return {
        "id": account.id,
        "gl_account_number": account.gl_account_number,
        "gl_account_name": account.gl_account_name,
        "utility_type_id": account.utility_type_id,
        "utility_type_key": utility_type.key if utility_type else None,
        "utility_type_label": utility_type.label if utility_type else None,
        "is_active": account.is_active,
    }


@router.get("", response_model=UtilityAccountsResponse)
async def list_accounts(db: DbSession) -> dict[str, Any]:
    """List all GL account mappings."""
    accounts = await UtilityAccountService(db).list_accounts()
    return {
        "accounts": [_account_to_response(account) for account in accounts],
        "total": len(accounts),
    }


@router.get("/suggestions", response_model=list[SuggestionResponse])
async def get_suggestions(
    db: DbSession,
    days: Annotated[int | None, Query(description="Look-back window in days")] = None,
) -> list[dict[str, Any]]:
    """List unmapped GL accounts from recent expenses, most frequent first."""
    window = days if days is not None else get_settings().suggestion_window_days
    suggestions = await UtilityAccountService(db).suggest_unmapped(window)
    return [
        {"gl_account_number": number, "occurrences": count}
        for number, count in suggestions
    ]


@router.post(
    "", response_model=UtilityAccountResponse, status_code=status.HTTP_201_CREATED
)
async def create_account(
    request: UtilityAccountCreateRequest, db: DbSession
) -> dict[str, Any]:
    """Map a GL account to a utility type."""
    service = UtilityAccountService(db)
    account = await service.map(
        request.gl_account_number,
        request.gl_account_name,
        request.utility_type_id,
        is_active=request.is_active,
    )
    return _account_to_response(await service.get(account.id))


@router.patch("/{account_id}", response_model=UtilityAccountResponse)
async def update_account(
    account_id: int, request: UtilityAccountUpdateRequest, db: DbSession
) -> dict[str, Any]:
    """Edit a GL account mapping."""
    service = UtilityAccountService(db)
    await service.update(
        account_id,
        gl_account_name=request.gl_account_name,
        utility_type_id=request.utility_type_id,
        is_active=request.is_active,
    )
    db.expire_all()
    return _account_to_response(await service.get(account_id))


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(account_id: int, db: DbSession) -> None:
    """Delete a GL account mapping."""
    await UtilityAccountService(db).delete(account_id)


async def reprocess_utilities(
    session: AsyncSession,
    date_from: date | None = None,
    date_to: date | None = None,
) -> dict[str, Any]:
    """Job body for reclassifying stored expenses."""
    return await UtilityAccountService(session).reprocess(date_from, date_to)


@router.post(
    "/reprocess",
    response_model=JobQueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def reprocess(
    runner: Runner, request: ReprocessRequest | None = None
) -> dict[str, Any]:
    """Queue a reclassification of stored expenses from current mappings."""
    request = request or ReprocessRequest()
    if request.date_from and request.date_to and request.date_from > request.date_to:
        raise ValidationError("date_from must not be after date_to", field="date_from")

    job_id = runner.enqueue(
        "utilities:reprocess",
        partial(reprocess_utilities, date_from=request.date_from, date_to=request.date_to),
    )
    return {"job_id": job_id, "status": runner.get_status(job_id)["status"]}
