"""Generate printable transaction report PDFs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from io import BytesIO
from xml.sax.saxutils import escape

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from shared.models import CategoryTotal, ReportTotals, TransactionRecord, TransactionType


DISPLAY_LIMIT = 500
CHART_CATEGORY_LIMIT = 10

_INCOME_COLOR = "#15803D"
_EXPENSE_COLOR = "#B91C1C"
_INK_COLOR = "#111827"
_MUTED_COLOR = "#6B7280"
_RULE_COLOR = "#CBD5E1"


@dataclass(slots=True)
class TransactionsReportData:
    """Input payload for transaction report rendering."""

    transactions: list[TransactionRecord]
    totals: ReportTotals
    categories: list[CategoryTotal] = field(default_factory=list)
    currency: str = "INR"
    filter_label: str | None = None
    generated_on: date = field(default_factory=date.today)


def _format_amount(value: Decimal, currency: str) -> str:
    return f"{value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,.2f} {currency}"


def _signed_amount_label(record: TransactionRecord, currency: str) -> str:
    sign = "+" if record.amount >= 0 else "-"
    return f"{sign}{_format_amount(abs(record.amount), currency)}"


def _truncate_text(value: str, max_length: int = 40) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 1].rstrip() + "…"


def _chart_rows(categories: list[CategoryTotal]) -> list[CategoryTotal]:
    """Largest categories first; everything past the limit is folded into one bar."""

    ordered = sorted(categories, key=lambda row: row.amount, reverse=True)
    rows = ordered[:CHART_CATEGORY_LIMIT]
    remainder = sum((row.amount for row in ordered[CHART_CATEGORY_LIMIT:]), Decimal("0"))
    if remainder > 0:
        rows.append(CategoryTotal(name="Remaining categories", amount=remainder))
    return rows


def _build_category_chart(categories: list[CategoryTotal], currency: str) -> tuple[bytes, int]:
    rows = _chart_rows(categories)
    # barh draws bottom-up, so reverse to keep the largest bar on top
    labels = [_truncate_text(row.name, 28) for row in reversed(rows)]
    values = [float(row.amount) for row in reversed(rows)]

    fig, ax = plt.subplots(figsize=(6.4, 0.45 * len(rows) + 0.8), dpi=140)
    bars = ax.barh(labels, values, color=_EXPENSE_COLOR, alpha=0.8, height=0.6)
    ax.bar_label(bars, labels=[f"{value:,.0f}" for value in values], padding=3, fontsize=7)
    ax.set_xlabel(f"Spent ({currency})", fontsize=8)
    ax.tick_params(axis="both", labelsize=8)
    ax.spines[["top", "right"]].set_visible(False)
    ax.margins(x=0.15)

    image_buffer = BytesIO()
    fig.savefig(image_buffer, format="png", bbox_inches="tight")
    plt.close(fig)
    return image_buffer.getvalue(), len(rows)


def _build_totals_strip(data: TransactionsReportData) -> Table:
    totals = data.totals
    net_color = _INCOME_COLOR if totals.net_savings >= 0 else _EXPENSE_COLOR
    table = Table(
        [
            ["INCOME", "EXPENSES", "NET SAVINGS"],
            [
                _format_amount(totals.total_income, data.currency),
                _format_amount(totals.total_expenses, data.currency),
                _format_amount(totals.net_savings, data.currency),
            ],
        ],
        colWidths=[59 * mm] * 3,
    )
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica"),
                ("FONTSIZE", (0, 0), (-1, 0), 7),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.HexColor(_MUTED_COLOR)),
                ("FONTNAME", (0, 1), (-1, 1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 1), (-1, 1), 13),
                ("TEXTCOLOR", (0, 1), (0, 1), colors.HexColor(_INCOME_COLOR)),
                ("TEXTCOLOR", (1, 1), (1, 1), colors.HexColor(_EXPENSE_COLOR)),
                ("TEXTCOLOR", (2, 1), (2, 1), colors.HexColor(net_color)),
                ("LINEABOVE", (0, 0), (-1, 0), 1.2, colors.HexColor(_INK_COLOR)),
                ("LINEBELOW", (0, 1), (-1, 1), 0.5, colors.HexColor(_RULE_COLOR)),
                ("TOPPADDING", (0, 1), (-1, 1), 2),
                ("BOTTOMPADDING", (0, 1), (-1, 1), 8),
            ]
        )
    )
    return table


def _build_transactions_table(data: TransactionsReportData) -> Table:
    shown = data.transactions[:DISPLAY_LIMIT]
    rows = [["Date", "Description", "Category", "Type", "Amount"]]
    if not shown:
        rows.append(["", "No transactions match this report.", "", "", ""])
    for record in shown:
        is_income = str(getattr(record.type, "value", record.type)) == TransactionType.INCOME.value
        rows.append(
            [
                record.date.strftime("%d %b %Y"),
                _truncate_text(record.title),
                _truncate_text(record.category, 24),
                "Income" if is_income else "Expense",
                _signed_amount_label(record, data.currency),
            ]
        )

    table = Table(rows, colWidths=[24 * mm, 62 * mm, 38 * mm, 18 * mm, 36 * mm], repeatRows=1)
    commands: list[tuple] = [
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("LINEBELOW", (0, 0), (-1, 0), 0.8, colors.HexColor(_INK_COLOR)),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F8FAFC")]),
        ("ALIGN", (4, 0), (4, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    for row_index, record in enumerate(shown, start=1):
        color = _INCOME_COLOR if record.amount >= 0 else _EXPENSE_COLOR
        commands.append(("TEXTCOLOR", (4, row_index), (4, row_index), colors.HexColor(color)))
    table.setStyle(TableStyle(commands))
    return table


def _draw_page_frame(canvas, doc) -> None:
    width, height = doc.pagesize
    canvas.saveState()
    canvas.setStrokeColor(colors.HexColor(_RULE_COLOR))
    canvas.setLineWidth(0.5)
    canvas.line(doc.leftMargin, 11 * mm, width - doc.rightMargin, 11 * mm)
    canvas.setFont("Helvetica", 7)
    canvas.setFillColor(colors.HexColor(_MUTED_COLOR))
    canvas.drawString(doc.leftMargin, 7 * mm, f"Financial Report · {doc.generated_on}")
    canvas.drawRightString(width - doc.rightMargin, 7 * mm, f"Page {canvas.getPageNumber()}")
    canvas.restoreState()


def generate_transactions_report_pdf(data: TransactionsReportData) -> bytes:
    """Render a financial report with totals, a category chart and the transaction history."""

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=16 * mm,
        title="Financial Report",
    )
    doc.generated_on = data.generated_on.strftime("%d %B %Y")

    styles = getSampleStyleSheet()
    heading = ParagraphStyle(name="ReportHeading", parent=styles["Heading1"], fontSize=18, spaceAfter=2)
    section = ParagraphStyle(name="ReportSection", parent=styles["Heading3"], spaceBefore=6, spaceAfter=3)
    muted = ParagraphStyle(
        name="ReportMuted", parent=styles["BodyText"], fontSize=8, textColor=colors.HexColor(_MUTED_COLOR)
    )

    story = [Paragraph("Financial Report", heading), Paragraph(f"Prepared {doc.generated_on}", muted)]
    if data.filter_label:
        story.append(Paragraph(f"Filter: {escape(data.filter_label)}", muted))
    story.extend([Spacer(1, 5 * mm), _build_totals_strip(data)])

    if data.categories:
        chart_bytes, bar_count = _build_category_chart(data.categories, data.currency)
        story.append(Paragraph("Spending by category", section))
        story.append(Image(BytesIO(chart_bytes), width=170 * mm, height=(8 * bar_count + 16) * mm, kind="proportional"))

    story.append(Paragraph("Transactions", section))
    if len(data.transactions) > DISPLAY_LIMIT:
        story.append(
            Paragraph(f"Showing the first {DISPLAY_LIMIT} of {len(data.transactions)} transactions.", muted)
        )
        story.append(Spacer(1, 2 * mm))
    story.append(_build_transactions_table(data))

    doc.build(story, onFirstPage=_draw_page_frame, onLaterPages=_draw_page_frame)
    return buffer.getvalue()
