"""Transaction use cases shared by the HTTP layer.

The store owns persistence; this service combines it with the search engine,
the aggregates and the report exporter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from backend.reporting import TransactionsReportData, generate_transactions_report_pdf
from backend.repositories.transactions_repository import TransactionsRepository
from backend.services import aggregates, carbon
from backend.services.carbon_tips import CarbonTipsGenerator
from backend.services.search import clamp_page, filter_by_type, paginate, search
from shared.models import (
    ActiveTypeFilter,
    CarbonFootprintResult,
    CarbonTipsResult,
    DashboardSummary,
    TransactionCreateRequest,
    TransactionPage,
    TransactionRecord,
    TransactionUpdateRequest,
)


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TransactionService:
    repository: TransactionsRepository
    tips_generator: CarbonTipsGenerator = field(default_factory=CarbonTipsGenerator)

    def filtered_transactions(
        self,
        user_id: str,
        *,
        query: str = "",
        active_type: ActiveTypeFilter = ActiveTypeFilter.ALL,
    ) -> list[TransactionRecord]:
        records = self.repository.list_visible(user_id)
        return search(filter_by_type(records, active_type), query)

    def list_transactions(
        self,
        user_id: str,
        *,
        query: str = "",
        active_type: ActiveTypeFilter = ActiveTypeFilter.ALL,
        page: int = 1,
        page_size: int = 10,
    ) -> TransactionPage:
        filtered = self.filtered_transactions(user_id, query=query, active_type=active_type)
        current_page = clamp_page(page, total=len(filtered), page_size=page_size)
        logger.info(
            "transactions_listed user_id=%s active_type=%s query_length=%s total=%s page=%s",
            user_id,
            ActiveTypeFilter(active_type).value,
            len(query),
            len(filtered),
            current_page,
        )
        return paginate(filtered, page=current_page, page_size=page_size)

    def hidden_transactions(self, user_id: str) -> list[TransactionRecord]:
        return self.repository.list_hidden(user_id)

    def create_transaction(self, user_id: str, request: TransactionCreateRequest) -> TransactionRecord:
        record = self.repository.create(user_id, request)
        logger.info("transaction_created user_id=%s transaction_id=%s", user_id, record.id)
        return record

    def update_transaction(
        self,
        user_id: str,
        transaction_id: str,
        request: TransactionUpdateRequest,
    ) -> TransactionRecord:
        record = self.repository.update(user_id, transaction_id, request)
        logger.info("transaction_updated user_id=%s transaction_id=%s", user_id, transaction_id)
        return record

    def hide_transaction(self, user_id: str, transaction_id: str) -> None:
        self.repository.set_hidden(user_id, transaction_id, True)
        logger.info("transaction_hidden user_id=%s transaction_id=%s", user_id, transaction_id)

    def unhide_transaction(self, user_id: str, transaction_id: str) -> None:
        self.repository.set_hidden(user_id, transaction_id, False)
        logger.info("transaction_unhidden user_id=%s transaction_id=%s", user_id, transaction_id)

    def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        self.repository.delete(user_id, transaction_id)
        logger.info("transaction_deleted user_id=%s transaction_id=%s", user_id, transaction_id)

    def dashboard_summary(self, user_id: str, *, monthly_budget: Decimal = Decimal("0")) -> DashboardSummary:
        return aggregates.build_dashboard_summary(
            self.repository.list_visible(user_id),
            monthly_budget=monthly_budget,
        )

    def carbon_footprint(self, user_id: str) -> CarbonFootprintResult:
        records = self.repository.list_visible(user_id)
        result = carbon.estimate_footprint(records)
        logger.info(
            "carbon_footprint_estimated user_id=%s transactions=%s categories=%s",
            user_id,
            len(records),
            len(result.rows),
        )
        return result

    def carbon_tips(self, user_id: str) -> CarbonTipsResult:
        return self.tips_generator.generate(self.repository.list_visible(user_id))

    def export_report(
        self,
        user_id: str,
        *,
        query: str = "",
        active_type: ActiveTypeFilter = ActiveTypeFilter.ALL,
    ) -> bytes:
        """Render the filtered transactions with totals over every visible transaction."""

        records = self.repository.list_visible(user_id)
        filtered = search(filter_by_type(records, active_type), query)
        filter_parts = []
        if ActiveTypeFilter(active_type) != ActiveTypeFilter.ALL:
            filter_parts.append(f"type={ActiveTypeFilter(active_type).value}")
        if query.strip():
            filter_parts.append(f'search="{query.strip()}"')

        logger.info(
            "transactions_report_requested user_id=%s transactions=%s",
            user_id,
            len(filtered),
        )
        return generate_transactions_report_pdf(
            TransactionsReportData(
                transactions=filtered,
                totals=aggregates.report_totals(records),
                categories=aggregates.category_totals(records),
                filter_label=", ".join(filter_parts) or None,
            )
        )
