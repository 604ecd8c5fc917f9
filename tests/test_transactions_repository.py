"""Unit tests for the in-memory and Supabase transaction stores."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from backend.repositories.transactions_repository import (
    InMemoryTransactionsRepository,
    SupabaseTransactionsRepository,
    signed_amount,
)
from shared.models import TransactionCreateRequest, TransactionType, TransactionUpdateRequest
from tests.fakes import OTHER_USER_ID, USER_ID, seeded_repository


_ROW = {
    "id": "t-1",
    "user_id": USER_ID,
    "title": "Coffee Shop",
    "amount": "-150.00",
    "type": "expense",
    "category": "Dining",
    "date": "2025-01-20T12:00:00Z",
    "notes": None,
    "is_hidden": False,
}


class _ClientStub:
    def __init__(
        self,
        rows: list[dict[str, object]] | None = None,
        written: list[dict[str, object]] | None = None,
    ) -> None:
        self.rows = rows or []
        self.written = [dict(_ROW)] if written is None else written
        self.calls: list[dict[str, object]] = []

    def get_rows(self, *, table, query, with_count, use_anon_key=False):
        self.calls.append({"method": "GET", "table": table, "query": query})
        return self.rows, None

    def post_rows(self, *, table, payload, query=None, use_anon_key=False, prefer="return=representation"):
        self.calls.append({"method": "POST", "table": table, "query": query, "payload": payload})
        return self.written

    def patch_rows(self, *, table, query, payload, use_anon_key=False):
        self.calls.append({"method": "PATCH", "table": table, "query": query, "payload": payload})
        return self.written

    def delete_rows(self, *, table, query, use_anon_key=False):
        self.calls.append({"method": "DELETE", "table": table, "query": query})
        return self.written


def test_signed_amount_follows_transaction_type() -> None:
    assert signed_amount(Decimal("150"), TransactionType.EXPENSE) == Decimal("-150")
    assert signed_amount(Decimal("-150"), TransactionType.EXPENSE) == Decimal("-150")
    assert signed_amount(Decimal("-500"), TransactionType.INCOME) == Decimal("500")


def test_in_memory_lists_visible_and_hidden_per_user_most_recent_first() -> None:
    repository = seeded_repository()

    visible = repository.list_visible(USER_ID)
    hidden = repository.list_hidden(USER_ID)

    assert [row.id for row in visible] == ["t-5", "t-4", "t-3", "t-2", "t-1"]
    assert [row.id for row in hidden] == ["t-h"]
    assert [row.id for row in repository.list_visible(OTHER_USER_ID)] == ["t-x"]


def test_in_memory_create_stores_signed_amount_and_defaults() -> None:
    repository = InMemoryTransactionsRepository()

    created = repository.create(
        USER_ID,
        TransactionCreateRequest(title="Groceries", amount=Decimal("42.10"), type=TransactionType.EXPENSE, category=" "),
    )

    assert created.amount == Decimal("-42.10")
    assert created.category == "Other"
    assert created.user_id == USER_ID
    assert created.date.tzinfo is not None
    assert repository.list_visible(USER_ID) == [created]


def test_in_memory_update_recomputes_sign_when_type_changes() -> None:
    repository = seeded_repository()

    updated = repository.update(USER_ID, "t-5", TransactionUpdateRequest(type=TransactionType.INCOME))

    assert updated.type == TransactionType.INCOME
    assert updated.amount == Decimal("150")
    assert updated.title == "Coffee Shop"


def test_in_memory_update_rejects_empty_changes() -> None:
    repository = seeded_repository()

    with pytest.raises(ValueError, match="No fields to update"):
        repository.update(USER_ID, "t-5", TransactionUpdateRequest())


def test_in_memory_hide_unhide_and_delete() -> None:
    repository = seeded_repository()

    repository.set_hidden(USER_ID, "t-5", True)
    assert "t-5" in [row.id for row in repository.list_hidden(USER_ID)]

    repository.set_hidden(USER_ID, "t-5", False)
    assert "t-5" in [row.id for row in repository.list_visible(USER_ID)]

    repository.delete(USER_ID, "t-5")
    assert "t-5" not in [row.id for row in repository.list_visible(USER_ID)]


@pytest.mark.parametrize("transaction_id", ["missing", "t-x"])
def test_in_memory_rejects_unknown_or_foreign_rows(transaction_id: str) -> None:
    repository = seeded_repository()

    with pytest.raises(ValueError, match="not found"):
        repository.delete(USER_ID, transaction_id)


def test_supabase_list_visible_filters_user_and_hidden_flag() -> None:
    client = _ClientStub(rows=[dict(_ROW)])
    repository = SupabaseTransactionsRepository(client=client)

    rows = repository.list_visible(USER_ID)

    assert rows[0].id == "t-1"
    assert rows[0].amount == Decimal("-150.00")
    assert rows[0].notes == ""
    assert rows[0].date == datetime(2025, 1, 20, 12, 0, tzinfo=timezone.utc)
    query = client.calls[0]["query"]
    assert client.calls[0]["table"] == "transactions"
    assert ("user_id", f"eq.{USER_ID}") in query
    assert ("is_hidden", "is.false") in query
    assert ("order", "date.desc") in query


@pytest.mark.parametrize("category", [None, "", "   "])
def test_supabase_rows_without_category_default_to_other(category) -> None:
    client = _ClientStub(rows=[{**_ROW, "category": category}])
    repository = SupabaseTransactionsRepository(client=client)

    assert repository.list_visible(USER_ID)[0].category == "Other"


@pytest.mark.parametrize("row", [{**_ROW, "date": None}, {**_ROW, "date": ""}, {k: v for k, v in _ROW.items() if k != "date"}])
def test_supabase_rows_without_date_use_current_utc_time(row: dict[str, object]) -> None:
    repository = SupabaseTransactionsRepository(client=_ClientStub(rows=[row]))
    before = datetime.now(timezone.utc)

    parsed = repository.list_visible(USER_ID)[0]

    assert parsed.date.tzinfo is not None
    assert before <= parsed.date <= datetime.now(timezone.utc)


def test_supabase_rows_without_notes_get_empty_notes() -> None:
    row = {key: value for key, value in _ROW.items() if key != "notes"}
    repository = SupabaseTransactionsRepository(client=_ClientStub(rows=[row]))

    assert repository.list_visible(USER_ID)[0].notes == ""


def test_supabase_list_skips_unusable_rows_and_keeps_the_rest(caplog) -> None:
    rows = [
        dict(_ROW),
        {**_ROW, "id": "t-null", "amount": None},
        {**_ROW, "id": "t-text", "amount": "twelve"},
        {**_ROW, "id": "t-nan", "amount": "NaN"},
        {**_ROW, "id": "t-type", "type": "transfer"},
        {**_ROW, "id": "t-date", "date": "last tuesday"},
    ]
    repository = SupabaseTransactionsRepository(client=_ClientStub(rows=rows))

    records = repository.list_visible(USER_ID)

    assert [record.id for record in records] == ["t-1"]
    for skipped_id in ["t-null", "t-text", "t-nan", "t-type", "t-date"]:
        assert f"transaction_row_skipped transaction_id={skipped_id}" in caplog.text


def test_supabase_list_hidden_queries_hidden_rows() -> None:
    client = _ClientStub(rows=[])
    repository = SupabaseTransactionsRepository(client=client)

    assert repository.list_hidden(USER_ID) == []
    assert ("is_hidden", "is.true") in client.calls[0]["query"]


def test_supabase_create_serializes_payload() -> None:
    client = _ClientStub()
    repository = SupabaseTransactionsRepository(client=client)

    created = repository.create(
        USER_ID,
        TransactionCreateRequest(
            title="Coffee Shop",
            amount=Decimal("150"),
            type=TransactionType.EXPENSE,
            category="Dining",
            date=datetime(2025, 1, 20, 12, 0, tzinfo=timezone.utc),
        ),
    )

    assert created.id == "t-1"
    payload = client.calls[0]["payload"]
    assert payload["amount"] == -150.0
    assert payload["type"] == "expense"
    assert payload["date"] == "2025-01-20T12:00:00+00:00"
    assert payload["user_id"] == USER_ID


def test_supabase_create_without_returned_row_raises() -> None:
    repository = SupabaseTransactionsRepository(client=_ClientStub(written=[]))

    with pytest.raises(RuntimeError):
        repository.create(
            USER_ID,
            TransactionCreateRequest(title="Coffee", amount=Decimal("1"), type=TransactionType.EXPENSE),
        )


def test_supabase_update_amount_reads_current_type_for_sign() -> None:
    client = _ClientStub(rows=[dict(_ROW)])
    repository = SupabaseTransactionsRepository(client=client)

    repository.update(USER_ID, "t-1", TransactionUpdateRequest(amount=Decimal("200")))

    assert [call["method"] for call in client.calls] == ["GET", "PATCH"]
    patch = client.calls[1]
    assert patch["payload"] == {"amount": -200.0}
    assert patch["query"]["id"] == "eq.t-1"
    assert patch["query"]["user_id"] == f"eq.{USER_ID}"


def test_supabase_update_title_skips_lookup() -> None:
    client = _ClientStub()
    repository = SupabaseTransactionsRepository(client=client)

    repository.update(USER_ID, "t-1", TransactionUpdateRequest(title="Cafe"))

    assert [call["method"] for call in client.calls] == ["PATCH"]
    assert client.calls[0]["payload"] == {"title": "Cafe"}


def test_supabase_set_hidden_and_delete_report_missing_rows() -> None:
    repository = SupabaseTransactionsRepository(client=_ClientStub(written=[]))

    with pytest.raises(ValueError, match="not found"):
        repository.set_hidden(USER_ID, "t-1", True)
    with pytest.raises(ValueError, match="not found"):
        repository.delete(USER_ID, "t-1")
