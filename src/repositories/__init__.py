# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""PMPulse repositories package."""

from src.repositories.alert_rule_repository import AlertRuleRepository
from src.repositories.exclusion_repository import ExclusionRepository
from src.repositories.expense_repository import ExpenseRepository
from src.repositories.formatting_rule_repository import FormattingRuleRepository
from src.repositories.setting_repository import SettingRepository
from src.repositories.utility_account_repository import UtilityAccountRepository
from src.repositories.utility_type_repository import UtilityTypeRepository

__all__ = [
    "AlertRuleRepository",
    "ExclusionRepository",
    "ExpenseRepository",
    "FormattingRuleRepository",
    "SettingRepository",
    "UtilityAccountRepository",
    "UtilityTypeRepository",
]
