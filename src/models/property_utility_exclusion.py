# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""PropertyUtilityExclusion model for leaving properties out of utility reports."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database import Base, utc_now

if TYPE_CHECKING:
    from src.models.utility_type import UtilityType


class PropertyUtilityExclusion(Base):
    """Excludes one property from comparisons of one utility type.

    Used where the landlord does not pay that utility, e.g. tenant-paid
    electric or water billed through an HOA.
    """

    __tablename__ = "property_utility_exclusions"
    __table_args__ = (
        UniqueConstraint(
            "property_external_id",
            "utility_type_id",
            name="uq_property_utility_exclusions_property_type",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    property_external_id: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True
    )
    utility_type_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("utility_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    utility_type: Mapped["UtilityType"] = relationship(
        back_populates="exclusions", lazy="joined"
    )

    @property
    def utility_type_label(self) -> str:
        """Get the label of the excluded utility type."""
        return self.utility_type.label if self.utility_type else "Unknown"

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<PropertyUtilityExclusion(property={self.property_external_id}, "
            f"type_id={self.utility_type_id})>"
        )
