"""Personal finance category taxonomy.

Rules may only assign one of these primary categories. The set mirrors the
primary categories the aggregation provider attaches to transactions, so a
rule-assigned category is indistinguishable from a provider-assigned one.
"""

from __future__ import annotations

PERSONAL_FINANCE_CATEGORIES: tuple[str, ...] = (
    "INCOME",
    "LOAN_DISBURSEMENTS",
    "LOAN_PAYMENTS",
    "TRANSFER_IN",
    "TRANSFER_OUT",
    "BANK_FEES",
    "ENTERTAINMENT",
    "FOOD_AND_DRINK",
    "GENERAL_MERCHANDISE",
    "HOME_IMPROVEMENT",
    "MEDICAL",
    "PERSONAL_CARE",
    "GENERAL_SERVICES",
    "GOVERNMENT_AND_NON_PROFIT",
    "TRANSPORTATION",
    "TRAVEL",
    "RENT_AND_UTILITIES",
    "OTHER",
)

DEFAULT_CATEGORY = "OTHER"


def is_valid_category(category: str | None) -> bool:
    return category in PERSONAL_FINANCE_CATEGORIES


def category_label(category: str | None) -> str:
    """Human label for a category key, e.g. ``FOOD_AND_DRINK`` -> ``Food And Drink``."""
    key = category if is_valid_category(category) else DEFAULT_CATEGORY
    return key.replace("_", " ").title()
