"""Dashboard and report aggregates over transaction records."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from shared.models import (
    DEFAULT_CATEGORY,
    CategoryTotal,
    DashboardSummary,
    ReportTotals,
    TransactionRecord,
    TransactionType,
)


logger = logging.getLogger(__name__)


RECENT_TRANSACTIONS_LIMIT = 8


def absolute_amount(record: TransactionRecord) -> Decimal | None:
    """Return ``abs(record.amount)`` or None when the amount is not numeric."""

    raw_amount = record.amount
    try:
        value = raw_amount if isinstance(raw_amount, Decimal) else Decimal(str(raw_amount))
    except (InvalidOperation, TypeError, ValueError):
        logger.warning("transaction_amount_invalid transaction_id=%s", record.id)
        return None
    if not value.is_finite():
        logger.warning("transaction_amount_invalid transaction_id=%s", record.id)
        return None
    return abs(value)


def _is_type(record: TransactionRecord, transaction_type: TransactionType) -> bool:
    return str(getattr(record.type, "value", record.type)) == transaction_type.value


def _sum_absolute(records: Iterable[TransactionRecord]) -> Decimal:
    total = Decimal("0")
    for record in records:
        amount = absolute_amount(record)
        if amount is not None:
            total += amount
    return total


def total_income(records: Sequence[TransactionRecord]) -> Decimal:
    return _sum_absolute(record for record in records if _is_type(record, TransactionType.INCOME))


def total_expenses(records: Sequence[TransactionRecord]) -> Decimal:
    return _sum_absolute(record for record in records if _is_type(record, TransactionType.EXPENSE))


def report_totals(records: Sequence[TransactionRecord]) -> ReportTotals:
    income = total_income(records)
    expenses = total_expenses(records)
    return ReportTotals(total_income=income, total_expenses=expenses, net_savings=income - expenses)


def savings_transactions(records: Sequence[TransactionRecord]) -> list[TransactionRecord]:
    """Return records saved aside.

    Either categorised as savings, or filed under "other expenses" with a title
    or note that mentions savings.
    """

    selected: list[TransactionRecord] = []
    for record in records:
        category = (record.category or "").lower()
        if category == "savings":
            selected.append(record)
            continue
        if category != "other expenses":
            continue
        title = (record.title or "").lower()
        notes = (record.notes or "").lower()
        if "savings" in title or "savings" in notes:
            selected.append(record)
    return selected


def total_savings(records: Sequence[TransactionRecord]) -> Decimal:
    return _sum_absolute(savings_transactions(records))


def category_totals(records: Sequence[TransactionRecord]) -> list[CategoryTotal]:
    """Return expense totals per category, in first-seen order."""

    totals: dict[str, Decimal] = {}
    for record in records:
        if not _is_type(record, TransactionType.EXPENSE):
            continue
        amount = absolute_amount(record)
        if amount is None:
            continue
        category = record.category or DEFAULT_CATEGORY
        totals[category] = totals.get(category, Decimal("0")) + amount
    return [CategoryTotal(name=name, amount=amount) for name, amount in totals.items()]


def recent_transactions(
    records: Sequence[TransactionRecord],
    limit: int = RECENT_TRANSACTIONS_LIMIT,
) -> list[TransactionRecord]:
    return list(records[:limit])


def budget_used_percent(expenses: Decimal, monthly_budget: Decimal) -> Decimal | None:
    """Return expenses as a percentage of the budget, or None when no budget is set."""

    if monthly_budget <= 0:
        return None
    return (expenses / monthly_budget * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def build_dashboard_summary(
    records: Sequence[TransactionRecord],
    monthly_budget: Decimal = Decimal("0"),
) -> DashboardSummary:
    totals = report_totals(records)
    return DashboardSummary(
        totals=totals,
        budget_remaining=totals.total_income - totals.total_expenses,
        total_savings=total_savings(records),
        categories=category_totals(records),
        recent=recent_transactions(records),
        monthly_budget=monthly_budget,
        budget_used_percent=budget_used_percent(totals.total_expenses, monthly_budget),
    )
