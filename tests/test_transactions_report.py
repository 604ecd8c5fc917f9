from datetime import date
from decimal import Decimal

from backend.reporting import TransactionsReportData, generate_transactions_report_pdf
from backend.reporting.transactions_report import CHART_CATEGORY_LIMIT, _chart_rows, _format_amount, _truncate_text
from shared.models import CategoryTotal
from backend.services.aggregates import category_totals, report_totals
from tests.fakes import make_record, sample_records


def test_generate_report_returns_pdf_bytes() -> None:
    records = sample_records()

    pdf_bytes = generate_transactions_report_pdf(
        TransactionsReportData(
            transactions=records,
            totals=report_totals(records),
            categories=category_totals(records),
            filter_label='type=expense, search="<coffee & tea>"',
            generated_on=date(2025, 2, 1),
        )
    )

    assert pdf_bytes.startswith(b"%PDF")
    assert len(pdf_bytes) > 1000


def test_generate_report_without_transactions_or_categories() -> None:
    pdf_bytes = generate_transactions_report_pdf(
        TransactionsReportData(transactions=[], totals=report_totals([]))
    )

    assert pdf_bytes.startswith(b"%PDF")


def test_generate_report_with_many_categories() -> None:
    records = [
        make_record(f"r-{index}", title=f"Purchase {index}", amount=f"-{index + 1}0", category=f"Category {index}")
        for index in range(12)
    ]

    pdf_bytes = generate_transactions_report_pdf(
        TransactionsReportData(
            transactions=records,
            totals=report_totals(records),
            categories=category_totals(records),
        )
    )

    assert pdf_bytes.startswith(b"%PDF")


def test_format_amount_rounds_to_cents_with_grouping() -> None:
    assert _format_amount(Decimal("1234.505"), "INR") == "1,234.51 INR"


def test_truncate_text_keeps_short_values() -> None:
    assert _truncate_text("Coffee Shop") == "Coffee Shop"
    assert _truncate_text("x" * 50, max_length=10) == "x" * 9 + "…"


def test_chart_rows_sort_descending_and_fold_the_tail() -> None:
    categories = [CategoryTotal(name=f"Category {index}", amount=Decimal(index + 1)) for index in range(13)]

    rows = _chart_rows(categories)

    assert len(rows) == CHART_CATEGORY_LIMIT + 1
    assert rows[0].name == "Category 12"
    assert rows[-1].name == "Remaining categories"
    assert rows[-1].amount == Decimal("6")


def test_chart_rows_without_tail_keep_every_category() -> None:
    categories = [CategoryTotal(name="Dining", amount=Decimal("10")), CategoryTotal(name="Rent", amount=Decimal("90"))]

    assert [row.name for row in _chart_rows(categories)] == ["Rent", "Dining"]


def test_generate_report_lists_overflow_notice(monkeypatch) -> None:
    monkeypatch.setattr("backend.reporting.transactions_report.DISPLAY_LIMIT", 2)
    records = sample_records()

    pdf_bytes = generate_transactions_report_pdf(
        TransactionsReportData(transactions=records, totals=report_totals(records))
    )

    assert pdf_bytes.startswith(b"%PDF")
