"""Transactions repository adapters.

Transactions live in the Supabase `public.transactions` table. Hidden rows are
soft-deleted: they stay in the table with `is_hidden = true`.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol
from uuid import uuid4

from backend.db.supabase_client import SupabaseClient
from shared.models import (
    DEFAULT_CATEGORY,
    TransactionCreateRequest,
    TransactionRecord,
    TransactionType,
    TransactionUpdateRequest,
)


logger = logging.getLogger(__name__)


_TABLE = "transactions"
_SELECT_COLUMNS = "id,user_id,title,amount,type,category,date,notes,is_hidden"


def _parse_amount(raw_amount: object) -> Decimal | None:
    if raw_amount is None or isinstance(raw_amount, bool):
        return None
    try:
        amount = Decimal(str(raw_amount).strip())
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


class TransactionsRepository(Protocol):
    def list_visible(self, user_id: str) -> list[TransactionRecord]:
        """Return non-hidden transactions, most recent first."""

    def list_hidden(self, user_id: str) -> list[TransactionRecord]:
        """Return hidden transactions, most recent first."""

    def create(self, user_id: str, request: TransactionCreateRequest) -> TransactionRecord:
        """Store a new transaction and return it with its assigned id."""

    def update(self, user_id: str, transaction_id: str, request: TransactionUpdateRequest) -> TransactionRecord:
        """Apply the provided fields to one transaction."""

    def set_hidden(self, user_id: str, transaction_id: str, hidden: bool) -> None:
        """Hide or restore one transaction."""

    def delete(self, user_id: str, transaction_id: str) -> None:
        """Permanently remove one transaction."""


def signed_amount(amount: Decimal, transaction_type: TransactionType) -> Decimal:
    """Return the stored amount: negative for expenses, positive for incomes."""

    if transaction_type == TransactionType.EXPENSE:
        return -abs(amount)
    return abs(amount)


def _update_payload(current_type: TransactionType | None, current_amount: Decimal | None, request: TransactionUpdateRequest) -> dict[str, Any]:
    changes = request.model_dump(exclude_none=True)
    if not changes:
        raise ValueError("No fields to update")
    if "category" in changes and not changes["category"].strip():
        changes["category"] = DEFAULT_CATEGORY
    if "amount" in changes or "type" in changes:
        transaction_type = request.type or current_type
        amount = request.amount if request.amount is not None else current_amount
        if transaction_type is not None and amount is not None:
            changes["amount"] = signed_amount(amount, transaction_type)
    return changes


def _sort_most_recent_first(rows: list[TransactionRecord]) -> list[TransactionRecord]:
    return sorted(rows, key=lambda row: row.date, reverse=True)


class InMemoryTransactionsRepository:
    """In-memory store used for local development and tests."""

    def __init__(self, seed: list[TransactionRecord] | None = None) -> None:
        self._rows: dict[str, TransactionRecord] = {row.id: row for row in seed or []}

    def _rows_for(self, user_id: str, *, hidden: bool) -> list[TransactionRecord]:
        rows = [
            row
            for row in self._rows.values()
            if row.user_id == user_id and row.is_hidden is hidden
        ]
        return _sort_most_recent_first(rows)

    def _get_owned(self, user_id: str, transaction_id: str) -> TransactionRecord:
        row = self._rows.get(transaction_id)
        if row is None or row.user_id != user_id:
            raise ValueError("Transaction not found")
        return row

    def list_visible(self, user_id: str) -> list[TransactionRecord]:
        return self._rows_for(user_id, hidden=False)

    def list_hidden(self, user_id: str) -> list[TransactionRecord]:
        return self._rows_for(user_id, hidden=True)

    def create(self, user_id: str, request: TransactionCreateRequest) -> TransactionRecord:
        row = TransactionRecord(
            id=str(uuid4()),
            user_id=user_id,
            title=request.title,
            amount=signed_amount(request.amount, request.type),
            type=request.type,
            category=request.category,
            date=request.date or datetime.now(timezone.utc),
            notes=request.notes,
        )
        self._rows[row.id] = row
        return row

    def update(self, user_id: str, transaction_id: str, request: TransactionUpdateRequest) -> TransactionRecord:
        current = self._get_owned(user_id, transaction_id)
        changes = _update_payload(current.type, current.amount, request)
        updated = TransactionRecord.model_validate({**current.model_dump(), **changes})
        self._rows[transaction_id] = updated
        return updated

    def set_hidden(self, user_id: str, transaction_id: str, hidden: bool) -> None:
        current = self._get_owned(user_id, transaction_id)
        self._rows[transaction_id] = current.model_copy(update={"is_hidden": hidden})

    def delete(self, user_id: str, transaction_id: str) -> None:
        self._get_owned(user_id, transaction_id)
        del self._rows[transaction_id]


class SupabaseTransactionsRepository:
    """Supabase repository reading and writing `public.transactions`."""

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    @staticmethod
    def _parse_row(row: dict[str, Any]) -> TransactionRecord:
        """Build a record from one row; raise ValueError when amount, type or date is unusable."""

        amount = _parse_amount(row.get("amount"))
        if amount is None:
            raise ValueError(f"invalid amount {row.get('amount')!r}")

        raw_date = row.get("date")
        if isinstance(raw_date, datetime):
            parsed_date = raw_date
        elif isinstance(raw_date, str) and raw_date:
            parsed_date = datetime.fromisoformat(raw_date.replace("Z", "+00:00"))
        else:
            parsed_date = datetime.now(timezone.utc)

        return TransactionRecord(
            id=str(row.get("id")),
            user_id=str(row["user_id"]) if row.get("user_id") is not None else None,
            title=str(row.get("title") or ""),
            amount=amount,
            type=TransactionType(str(row.get("type"))),
            category=row.get("category"),
            date=parsed_date,
            notes=row.get("notes"),
            is_hidden=bool(row.get("is_hidden") or False),
        )

    @staticmethod
    def _serialize(changes: dict[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for key, value in changes.items():
            if isinstance(value, Decimal):
                payload[key] = float(value)
            elif isinstance(value, datetime):
                payload[key] = value.isoformat()
            elif isinstance(value, TransactionType):
                payload[key] = value.value
            else:
                payload[key] = value
        return payload

    def _list(self, user_id: str, *, hidden: bool) -> list[TransactionRecord]:
        rows, _ = self._client.get_rows(
            table=_TABLE,
            query=[
                ("select", _SELECT_COLUMNS),
                ("user_id", f"eq.{user_id}"),
                ("is_hidden", f"is.{'true' if hidden else 'false'}"),
                ("order", "date.desc"),
            ],
            with_count=False,
            use_anon_key=False,
        )
        records: list[TransactionRecord] = []
        for row in rows:
            try:
                records.append(self._parse_row(row))
            except ValueError as exc:
                logger.warning("transaction_row_skipped transaction_id=%s reason=%s", row.get("id"), exc)
        return records

    def _owned_query(self, user_id: str, transaction_id: str) -> dict[str, str | int]:
        return {
            "id": f"eq.{transaction_id}",
            "user_id": f"eq.{user_id}",
            "select": _SELECT_COLUMNS,
        }

    def list_visible(self, user_id: str) -> list[TransactionRecord]:
        return self._list(user_id, hidden=False)

    def list_hidden(self, user_id: str) -> list[TransactionRecord]:
        return self._list(user_id, hidden=True)

    def create(self, user_id: str, request: TransactionCreateRequest) -> TransactionRecord:
        payload = self._serialize(
            {
                "user_id": user_id,
                "title": request.title,
                "amount": signed_amount(request.amount, request.type),
                "type": request.type,
                "category": request.category,
                "date": request.date or datetime.now(timezone.utc),
                "notes": request.notes,
            }
        )
        rows = self._client.post_rows(
            table=_TABLE,
            payload=payload,
            query={"select": _SELECT_COLUMNS},
            use_anon_key=False,
        )
        if not rows:
            raise RuntimeError("Supabase did not return created transaction")
        return self._parse_row(rows[0])

    def update(self, user_id: str, transaction_id: str, request: TransactionUpdateRequest) -> TransactionRecord:
        current_type: TransactionType | None = None
        current_amount: Decimal | None = None
        if (request.amount is None) != (request.type is None):
            current_rows, _ = self._client.get_rows(
                table=_TABLE,
                query={**self._owned_query(user_id, transaction_id), "limit": 1},
                with_count=False,
                use_anon_key=False,
            )
            if not current_rows:
                raise ValueError("Transaction not found")
            current = self._parse_row(current_rows[0])
            current_type, current_amount = current.type, current.amount

        changes = _update_payload(current_type, current_amount, request)
        rows = self._client.patch_rows(
            table=_TABLE,
            query=self._owned_query(user_id, transaction_id),
            payload=self._serialize(changes),
            use_anon_key=False,
        )
        if not rows:
            raise ValueError("Transaction not found")
        return self._parse_row(rows[0])

    def set_hidden(self, user_id: str, transaction_id: str, hidden: bool) -> None:
        rows = self._client.patch_rows(
            table=_TABLE,
            query=self._owned_query(user_id, transaction_id),
            payload={"is_hidden": hidden},
            use_anon_key=False,
        )
        if not rows:
            raise ValueError("Transaction not found")

    def delete(self, user_id: str, transaction_id: str) -> None:
        rows = self._client.delete_rows(
            table=_TABLE,
            query=self._owned_query(user_id, transaction_id),
            use_anon_key=False,
        )
        if not rows:
            raise ValueError("Transaction not found")
