"""Pydantic contracts shared across the store, services and HTTP layers."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_CATEGORY = "Other"


class TransactionType(str, Enum):
    """Authoritative income/expense classification of a transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class ActiveTypeFilter(str, Enum):
    """Income/expense/all toggle applied to transaction listings."""

    ALL = "all"
    INCOME = "income"
    EXPENSE = "expense"


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _default_category(value: object) -> object:
    if value is None:
        return DEFAULT_CATEGORY
    if isinstance(value, str) and not value.strip():
        return DEFAULT_CATEGORY
    return value


class TransactionRecord(BaseModel):
    """A single income or expense entry owned by the transaction store."""

    model_config = ConfigDict(extra="forbid")

    id: str
    user_id: str | None = None
    title: str
    amount: Decimal
    type: TransactionType
    category: str = DEFAULT_CATEGORY
    date: datetime
    notes: str = ""
    is_hidden: bool = False

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, value: object) -> object:
        return _default_category(value)

    @field_validator("date")
    @classmethod
    def aware_date(cls, value: datetime) -> datetime:
        return _aware(value)

    @field_validator("notes", mode="before")
    @classmethod
    def default_notes(cls, value: object) -> object:
        return "" if value is None else value


class TransactionCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    amount: Decimal
    type: TransactionType
    category: str = DEFAULT_CATEGORY
    date: datetime | None = None
    notes: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, value: object) -> object:
        return _default_category(value)

    @field_validator("date")
    @classmethod
    def aware_date(cls, value: datetime | None) -> datetime | None:
        return _aware(value)


class TransactionUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    amount: Decimal | None = None
    type: TransactionType | None = None
    category: str | None = None
    date: datetime | None = None
    notes: str | None = None


class TransactionPage(BaseModel):
    """One page of a filtered transaction listing."""

    model_config = ConfigDict(extra="forbid")

    items: list[TransactionRecord]
    page: int
    page_size: int
    total: int
    total_pages: int


class ReportTotals(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total_income: Decimal
    total_expenses: Decimal
    net_savings: Decimal


class CategoryTotal(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    amount: Decimal


class DashboardSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    totals: ReportTotals
    budget_remaining: Decimal
    total_savings: Decimal
    categories: list[CategoryTotal]
    recent: list[TransactionRecord]
    monthly_budget: Decimal = Decimal("0")
    budget_used_percent: Decimal | None = None


class ProfileRecord(BaseModel):
    """User profile row; `budget` is the monthly spending budget, 0 when unset."""

    model_config = ConfigDict(extra="forbid")

    id: str
    full_name: str = ""
    email: str = ""
    mobile_number: str = ""
    avatar_url: str | None = None
    budget: Decimal = Decimal("0")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("full_name", "email", "mobile_number", mode="before")
    @classmethod
    def default_text(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("budget", mode="before")
    @classmethod
    def default_budget(cls, value: object) -> object:
        return Decimal("0") if value is None else value

    @field_validator("created_at", "updated_at")
    @classmethod
    def aware_timestamps(cls, value: datetime | None) -> datetime | None:
        return _aware(value)


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    full_name: str | None = None
    email: str | None = None
    mobile_number: str | None = None
    budget: Decimal | None = Field(default=None, ge=0)


class CarbonFootprintRow(BaseModel):
    model_config = ConfigDict(extra="forbid")

    category: str
    spent: Decimal
    factor: Decimal
    value_kg: Decimal
    value_tons: Decimal


class CarbonFootprintResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rows: list[CarbonFootprintRow]
    total_tons: Decimal


class CarbonTip(BaseModel):
    model_config = ConfigDict(extra="ignore")

    category: str
    tip: str
    impact: str = ""


class CarbonTipsResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tips: list[CarbonTip]
    spending_analysis: dict[str, Decimal]
    fallback: bool = False


class PasswordVerifyRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    password: str = ""


class PasswordVerifyResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    valid: bool


class OtpVerifyRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    mobile: str
    otp: str
    user_id: str | None = Field(default=None, alias="userId")


class OtpVerifyResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    verified: bool
    message: str
