# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""UtilityType model for the utility classification taxonomy."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database import Base, utc_now

if TYPE_CHECKING:
    from src.models.formatting_rule import UtilityFormattingRule
    from src.models.property_utility_exclusion import PropertyUtilityExclusion
    from src.models.utility_account import UtilityAccount

DEFAULT_ICON = "CubeIcon"
DEFAULT_COLOR_SCHEME = "slate"

# Symbolic icon keys resolved to components by the presentation layer
AVAILABLE_ICONS: dict[str, str] = {
    "BeakerIcon": "Beaker",
    "BoltIcon": "Lightning",
    "FireIcon": "Fire",
    "TrashIcon": "Trash",
    "SparklesIcon": "Sparkles",
    "CubeIcon": "Box",
    "CloudIcon": "Cloud",
    "SunIcon": "Sun",
    "MoonIcon": "Moon",
    "HomeIcon": "Home",
    "BuildingOfficeIcon": "Building",
    "WrenchIcon": "Wrench",
    "CogIcon": "Cog",
    "SignalIcon": "Signal",
    "WifiIcon": "WiFi",
    "PhoneIcon": "Phone",
    "TruckIcon": "Truck",
    "ArrowPathIcon": "Recycle",
    "ShieldCheckIcon": "Shield",
    "ExclamationTriangleIcon": "Warning",
}

AVAILABLE_COLOR_SCHEMES: dict[str, str] = {
    "blue": "Blue",
    "yellow": "Yellow",
    "orange": "Orange",
    "red": "Red",
    "green": "Green",
    "teal": "Teal",
    "cyan": "Cyan",
    "purple": "Purple",
    "pink": "Pink",
    "indigo": "Indigo",
    "gray": "Gray",
    "slate": "Slate",
}

# Built-in types: (key, label, icon, color_scheme, sort_order)
SYSTEM_TYPES: list[tuple[str, str, str, str, int]] = [
    ("water", "Water", "BeakerIcon", "blue", 1),
    ("electric", "Electric", "BoltIcon", "yellow", 2),
    ("gas", "Gas", "FireIcon", "orange", 3),
    ("garbage", "Garbage", "TrashIcon", "gray", 4),
    ("sewer", "Sewer", "SparklesIcon", "green", 5),
    ("other", "Other", "CubeIcon", "purple", 100),
]


class UtilityType(Base):
    """A utility classification bucket such as water or electric.

    System types are seeded and can never be deleted. Custom types are
    created by administrators and can be removed while unused.
    """

    __tablename__ = "utility_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color_scheme: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    accounts: Mapped[list["UtilityAccount"]] = relationship(
        back_populates="utility_type", passive_deletes=True
    )
    formatting_rules: Mapped[list["UtilityFormattingRule"]] = relationship(
        back_populates="utility_type",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    exclusions: Mapped[list["PropertyUtilityExclusion"]] = relationship(
        back_populates="utility_type",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def icon_or_default(self) -> str:
        """Get the icon, falling back to the default icon."""
        return self.icon or DEFAULT_ICON

    @property
    def color_scheme_or_default(self) -> str:
        """Get the color scheme, falling back to the default scheme."""
        return self.color_scheme or DEFAULT_COLOR_SCHEME

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<UtilityType(id={self.id}, key={self.key}, system={self.is_system})>"
