"""Reporting utilities for backend-generated documents."""

from backend.reporting.transactions_report import (
    TransactionsReportData,
    generate_transactions_report_pdf,
)

__all__ = ["TransactionsReportData", "generate_transactions_report_pdf"]
