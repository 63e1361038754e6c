# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""SQLAlchemy ORM models for PMPulse."""

from src.models.alert_rule import AlertRule
from src.models.expense_record import ExpenseRecord
from src.models.formatting_rule import UtilityFormattingRule
from src.models.property_utility_exclusion import PropertyUtilityExclusion
from src.models.setting import Setting
from src.models.utility_account import UtilityAccount
from src.models.utility_type import UtilityType

__all__ = [
    "AlertRule",
    "ExpenseRecord",
    "PropertyUtilityExclusion",
    "Setting",
    "UtilityAccount",
    "UtilityFormattingRule",
    "UtilityType",
]
