from __future__ import annotations

from decimal import Decimal

import pytest

from backend.services.carbon_tips import CarbonTipsGenerator
from backend.services.transaction_service import TransactionService
from shared.models import ActiveTypeFilter, TransactionCreateRequest, TransactionType, TransactionUpdateRequest
from tests.fakes import USER_ID, FakeChatCompletionClient, seeded_repository


def _service(content: str | None = '[{"category": "Energy", "tip": "Use LEDs."}]') -> TransactionService:
    return TransactionService(
        repository=seeded_repository(),
        tips_generator=CarbonTipsGenerator(model="gpt-test", client=FakeChatCompletionClient(content=content)),
    )


def test_filtered_transactions_combines_type_filter_and_search() -> None:
    service = _service()

    expenses = service.filtered_transactions(USER_ID, active_type=ActiveTypeFilter.EXPENSE)
    coffee = service.filtered_transactions(USER_ID, query="coffee")

    assert [record.id for record in expenses] == ["t-5", "t-3", "t-2"]
    assert [record.id for record in coffee] == ["t-5"]


def test_list_transactions_clamps_out_of_range_page() -> None:
    service = _service()

    page = service.list_transactions(USER_ID, page=9, page_size=2)

    assert page.page == 3
    assert [record.id for record in page.items] == ["t-1"]
    assert page.total == 5
    assert page.total_pages == 3


def test_list_transactions_logs_query_length_not_query(caplog) -> None:
    service = _service()

    with caplog.at_level("INFO"):
        service.list_transactions(USER_ID, query="secret salary", page=1, page_size=10)

    assert "transactions_listed" in caplog.text
    assert "query_length=13" in caplog.text
    assert "secret salary" not in caplog.text


def test_hidden_transactions_are_excluded_from_listings_and_aggregates() -> None:
    service = _service()

    assert [record.id for record in service.hidden_transactions(USER_ID)] == ["t-h"]
    assert "t-h" not in [record.id for record in service.filtered_transactions(USER_ID, query="gift")]
    assert service.dashboard_summary(USER_ID).totals.total_expenses == Decimal("3584.5")


def test_write_operations_round_trip_through_the_store() -> None:
    service = _service()

    created = service.create_transaction(
        USER_ID,
        TransactionCreateRequest(title="Bookstore", amount=Decimal("300"), type=TransactionType.EXPENSE, category="Shopping"),
    )
    updated = service.update_transaction(USER_ID, created.id, TransactionUpdateRequest(amount=Decimal("350")))
    service.hide_transaction(USER_ID, created.id)
    hidden_ids = [record.id for record in service.hidden_transactions(USER_ID)]
    service.unhide_transaction(USER_ID, created.id)
    service.delete_transaction(USER_ID, created.id)

    assert updated.amount == Decimal("-350")
    assert created.id in hidden_ids
    assert created.id not in [record.id for record in service.filtered_transactions(USER_ID)]


def test_update_unknown_transaction_raises_not_found() -> None:
    service = _service()

    with pytest.raises(ValueError, match="not found"):
        service.update_transaction(USER_ID, "missing", TransactionUpdateRequest(title="x"))


def test_carbon_footprint_uses_visible_expenses() -> None:
    result = _service().carbon_footprint(USER_ID)

    assert {row.category for row in result.rows} == {"Food & Dining", "Transportation", "Bills & Utilities"}


def test_carbon_tips_delegates_to_generator() -> None:
    result = _service().carbon_tips(USER_ID)

    assert [tip.tip for tip in result.tips] == ["Use LEDs."]
    assert "Shopping" not in result.spending_analysis


def test_export_report_renders_pdf() -> None:
    pdf_bytes = _service().export_report(USER_ID, query="bill", active_type=ActiveTypeFilter.EXPENSE)

    assert pdf_bytes.startswith(b"%PDF")
