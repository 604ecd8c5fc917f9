"""Carbon footprint estimation from expense categories."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from backend.services.aggregates import absolute_amount
from shared.models import (
    DEFAULT_CATEGORY,
    CarbonFootprintResult,
    CarbonFootprintRow,
    TransactionRecord,
    TransactionType,
)


_CATEGORY_ALIASES: dict[str, str] = {
    "transportation": "Transportation",
    "travel": "Travel",
    "food & dining": "Food & Dining",
    "food and dining": "Food & Dining",
    "food": "Food & Dining",
    "dining": "Food & Dining",
    "shopping": "Shopping",
    "bills & utilities": "Bills & Utilities",
    "bills and utilities": "Bills & Utilities",
    "utilities": "Bills & Utilities",
    "entertainment": "Entertainment",
    "healthcare": "Healthcare",
    "other expenses": "Other expenses",
    "housing": "Housing",
    "insurance": "Insurance",
    "savings": "Savings",
    "other": "Other",
}

# kg CO2 per currency unit spent
CARBON_FACTORS: dict[str, Decimal] = {
    "Transportation": Decimal("0.0005"),
    "Travel": Decimal("0.0005"),
    "Food & Dining": Decimal("0.0003"),
    "Shopping": Decimal("0.0002"),
    "Bills & Utilities": Decimal("0.0006"),
    "Entertainment": Decimal("0.00015"),
    "Healthcare": Decimal("0.0001"),
    "Other expenses": Decimal("0.0002"),
    "Housing": Decimal("0.0004"),
    "Insurance": Decimal("0.00005"),
    "Savings": Decimal("0.00001"),
    "Other": Decimal("0.0002"),
}

_KG_PER_TON = Decimal("1000")


def normalize_category(category: str | None) -> str:
    """Map common category spellings onto the factor table keys."""

    label = category or DEFAULT_CATEGORY
    return _CATEGORY_ALIASES.get(label.lower(), label)


def carbon_factor(category: str) -> Decimal:
    return CARBON_FACTORS.get(category, CARBON_FACTORS["Other"])


def spending_by_category(records: Sequence[TransactionRecord]) -> dict[str, Decimal]:
    """Sum absolute expense amounts per normalized category."""

    spending: dict[str, Decimal] = {}
    for record in records:
        if str(getattr(record.type, "value", record.type)) != TransactionType.EXPENSE.value:
            continue
        amount = absolute_amount(record)
        if amount is None:
            continue
        category = normalize_category(record.category)
        spending[category] = spending.get(category, Decimal("0")) + amount
    return spending


def estimate_footprint(records: Sequence[TransactionRecord]) -> CarbonFootprintResult:
    rows: list[CarbonFootprintRow] = []
    for category, spent in spending_by_category(records).items():
        factor = carbon_factor(category)
        value_kg = spent * factor
        if value_kg <= 0:
            continue
        rows.append(
            CarbonFootprintRow(
                category=category,
                spent=spent,
                factor=factor,
                value_kg=value_kg,
                value_tons=value_kg / _KG_PER_TON,
            )
        )
    total_tons = sum((row.value_tons for row in rows), Decimal("0"))
    return CarbonFootprintResult(rows=rows, total_tons=total_tons)
