"""LLM-generated carbon footprint reduction tips backed by OpenAI chat completions."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol

from pydantic import ValidationError

from backend.services.aggregates import absolute_amount
from shared import config
from shared.models import (
    DEFAULT_CATEGORY,
    CarbonTip,
    CarbonTipsResult,
    TransactionRecord,
    TransactionType,
)


logger = logging.getLogger(__name__)


TIPS_TRANSACTIONS_LIMIT = 50

_SYSTEM_PROMPT = (
    "You are an environmental advisor who provides practical carbon footprint reduction tips "
    "based on spending patterns. Always respond with valid JSON."
)

FALLBACK_TIPS: tuple[CarbonTip, ...] = (
    CarbonTip(
        category="General",
        tip="Consider using public transport or cycling to reduce transportation emissions.",
        impact="Can reduce CO₂ by up to 2.6 tons per year.",
    ),
    CarbonTip(
        category="Energy",
        tip="Switch to LED bulbs and unplug devices when not in use.",
        impact="Save 10–15% on electricity bills.",
    ),
    CarbonTip(
        category="Food",
        tip="Choose local and seasonal produce to reduce food miles.",
        impact="Reduce food-related emissions by 20%.",
    ),
)


class CarbonTipsUnavailableError(Exception):
    """Raised when tips cannot be requested from the language model."""


class NoSpendingDataError(ValueError):
    """Raised when there is no expense to base tips on."""


class ChatCompletionClient(Protocol):
    """Abstraction over OpenAI chat completion for easy mocking in tests."""

    def create_chat_completion(
        self,
        model: str,
        messages: list[dict[str, Any]],
        temperature: float,
        max_tokens: int,
    ) -> str | None:
        """Return the first choice message content."""


@dataclass(slots=True)
class OpenAIChatCompletionClient:
    """Concrete OpenAI chat client wrapper."""

    api_key: str
    timeout_s: float | None = 20.0

    def create_chat_completion(
        self,
        model: str,
        messages: list[dict[str, Any]],
        temperature: float,
        max_tokens: int,
    ) -> str | None:
        from openai import OpenAI

        client_kwargs: dict[str, Any] = {"api_key": self.api_key}
        if self.timeout_s is not None:
            client_kwargs["timeout"] = self.timeout_s

        client = OpenAI(**client_kwargs)
        response = client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content


def spending_analysis(records: Sequence[TransactionRecord]) -> dict[str, Decimal]:
    """Sum absolute expense amounts per raw category label."""

    spending: dict[str, Decimal] = {}
    for record in records:
        if str(getattr(record.type, "value", record.type)) != TransactionType.EXPENSE.value:
            continue
        amount = absolute_amount(record)
        if amount is None:
            continue
        category = record.category or DEFAULT_CATEGORY
        spending[category] = spending.get(category, Decimal("0")) + amount
    return spending


def build_tips_prompt(spending: dict[str, Decimal]) -> str:
    total = sum(spending.values(), Decimal("0"))
    lines = "\n".join(f"- {category}: ₹{amount}" for category, amount in spending.items())
    return (
        "Based on the following spending analysis, provide personalized eco-friendly tips "
        "to reduce carbon footprint:\n\n"
        f"Spending Categories and Amounts:\n{lines}\n\n"
        f"Total Monthly Expenses: ₹{total}\n\n"
        "Please provide:\n"
        "1. 3-4 specific, actionable tips tailored to their spending patterns\n"
        "2. Focus on categories where they spend the most\n"
        "3. Include potential cost savings where applicable\n"
        "4. Keep tips practical and achievable\n\n"
        'Format as a JSON array of objects with "category", "tip", and "impact" fields.'
    )


def parse_tips(content: str | None) -> list[CarbonTip] | None:
    """Parse the model answer into tips, or None when it is not a usable JSON array."""

    if not content:
        return None
    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("tips"), list):
        payload = payload["tips"]
    if not isinstance(payload, list):
        return None
    try:
        return [CarbonTip.model_validate(item) for item in payload]
    except ValidationError:
        return None


@dataclass(slots=True)
class CarbonTipsGenerator:
    """Ask a language model for tips tailored to a user's spending."""

    model: str = field(default_factory=config.carbon_tips_model)
    client: ChatCompletionClient | None = None
    temperature: float = 0.7
    max_tokens: int = 1000

    def _resolve_client(self) -> ChatCompletionClient:
        if self.client is not None:
            return self.client
        api_key = config.openai_api_key()
        if not api_key:
            raise CarbonTipsUnavailableError("OPENAI_API_KEY is not set")
        return OpenAIChatCompletionClient(api_key=api_key)

    def generate(self, records: Sequence[TransactionRecord]) -> CarbonTipsResult:
        spending = spending_analysis(records[:TIPS_TRANSACTIONS_LIMIT])
        if not spending:
            raise NoSpendingDataError("Add some transactions to get personalized carbon tips")

        prompt = build_tips_prompt(spending)
        client = self._resolve_client()
        try:
            content = client.create_chat_completion(
                model=self.model,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as exc:
            logger.exception("carbon_tips_llm_failed model=%s", self.model)
            raise CarbonTipsUnavailableError("Failed to generate personalized tips") from exc

        tips = parse_tips(content)
        if tips is None:
            excerpt = (content or "")[:500]
            logger.warning('carbon_tips_llm_invalid_json model=%s excerpt="%s"', self.model, excerpt)
            return CarbonTipsResult(tips=list(FALLBACK_TIPS), spending_analysis=spending, fallback=True)

        logger.info("carbon_tips_llm_ok model=%s tips_count=%s", self.model, len(tips))
        return CarbonTipsResult(tips=tips, spending_analysis=spending)
