"""Fuzzy transaction search, type filtering and pagination.

All functions here are pure: they never mutate the records they receive and
always return a new list, preserving the relative order of the input (the
store supplies records date-descending).
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation

from rapidfuzz.distance import Levenshtein

from shared.models import ActiveTypeFilter, TransactionPage, TransactionRecord


_NON_NUMERIC_PATTERN = re.compile(r"[^0-9.]")
_FUZZY_TOLERANCE_RATIO = 0.3


def levenshtein_distance(source: str, target: str) -> int:
    """Return the minimum number of single-character edits turning source into target."""

    return int(Levenshtein.distance(source, target))


def _type_value(value: object) -> str:
    return str(getattr(value, "value", value))


def filter_by_type(
    records: Sequence[TransactionRecord],
    active_type: ActiveTypeFilter | str,
) -> list[TransactionRecord]:
    """Keep records of the active type; ``all`` keeps every record."""

    active = ActiveTypeFilter(active_type)
    if active == ActiveTypeFilter.ALL:
        return list(records)
    return [record for record in records if _type_value(record.type) == active.value]


def absolute_amount_text(amount: object) -> str | None:
    """Render ``abs(amount)`` as a plain decimal string, or None when malformed.

    Trailing fractional zeros are dropped and no exponent is used, so
    ``Decimal("-1234.50")`` renders as ``"1234.5"`` and ``50000`` as ``"50000"``.
    """

    if isinstance(amount, bool):
        return None
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not value.is_finite():
        return None
    return format(abs(value).normalize(), "f")


def _numeric_needle(query: str) -> str:
    return _NON_NUMERIC_PATTERN.sub("", query)


def _words_relate(query_word: str, title_word: str) -> bool:
    if not query_word or not title_word:
        return False
    if query_word in title_word or title_word in query_word:
        return True
    max_distance = math.floor(len(query_word) * _FUZZY_TOLERANCE_RATIO)
    return levenshtein_distance(title_word, query_word) <= max_distance


def _matches(record: TransactionRecord, query_lower: str, needle: str, query_words: list[str]) -> bool:
    title_lower = str(record.title or "").lower()
    if query_lower in title_lower:
        return True

    category_lower = str(record.category or "").lower()
    if query_lower in category_lower:
        return True

    if needle:
        amount_text = absolute_amount_text(record.amount)
        if amount_text is not None and needle in amount_text:
            return True

    title_words = title_lower.split()
    return any(
        _words_relate(query_word, title_word)
        for query_word in query_words
        for title_word in title_words
    )


def search(records: Sequence[TransactionRecord], query: str) -> list[TransactionRecord]:
    """Return records matching the free-text query.

    A record matches when any of these holds (text compared lower-cased):

    - the title contains the query;
    - the category contains the query;
    - ``abs(amount)`` as text contains the digits and dots of the query;
    - some query word and some title word contain one another, or are within
      ``floor(len(query_word) * 0.3)`` edits of each other.

    A blank query returns every record.
    """

    if not query or not query.strip():
        return list(records)

    query_lower = query.lower()
    needle = _numeric_needle(query)
    query_words = query_lower.split()
    return [record for record in records if _matches(record, query_lower, needle, query_words)]


def paginate(records: Sequence[TransactionRecord], *, page: int, page_size: int) -> TransactionPage:
    """Slice one 1-based page out of records.

    The page is not clamped here; out-of-range pages yield no items.
    """

    if page_size < 1:
        raise ValueError("page_size must be positive")
    total = len(records)
    start = (page - 1) * page_size
    items = list(records[start : start + page_size]) if page >= 1 else []
    return TransactionPage(
        items=items,
        page=page,
        page_size=page_size,
        total=total,
        total_pages=math.ceil(total / page_size),
    )


def clamp_page(page: int, *, total: int, page_size: int) -> int:
    """Clamp a requested page into the range callers can display."""

    total_pages = max(math.ceil(total / page_size), 1)
    return min(max(page, 1), total_pages)
