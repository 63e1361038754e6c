# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""UtilityAccount model mapping GL accounts to utility types."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database import Base, utc_now

if TYPE_CHECKING:
    from src.models.utility_type import UtilityType


class UtilityAccount(Base):
    """Mapping from a general-ledger account number to a utility type.

    Inactive mappings are kept for history but ignored by classification.
    """

    __tablename__ = "utility_accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    gl_account_number: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True
    )
    gl_account_name: Mapped[str] = mapped_column(String(255), nullable=False)
    utility_type_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("utility_types.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    utility_type: Mapped["UtilityType"] = relationship(
        back_populates="accounts", lazy="joined"
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<UtilityAccount(gl={self.gl_account_number}, "
            f"type_id={self.utility_type_id}, active={self.is_active})>"
        )
