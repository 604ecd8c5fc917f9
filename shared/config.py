"""Configuration helpers for environment variables."""

from __future__ import annotations

import os
import logging

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


_DEFAULT_PAGE_SIZE = 10
_DEFAULT_CARBON_TIPS_MODEL = "gpt-4o-mini"


def _should_load_dotenv() -> bool:
    """Return whether local dotenv loading should run."""
    app_env = os.getenv("APP_ENV", "dev").strip().lower()
    return app_env in {"dev", "local"}


if _should_load_dotenv():
    load_dotenv()


def get_env(name: str, default: str | None = None) -> str | None:
    """Return a raw environment value or default."""
    return os.getenv(name, default)


def app_env() -> str:
    """Return the current application environment."""
    return (get_env("APP_ENV", "dev") or "dev").strip() or "dev"


def cors_allow_origins() -> list[str]:
    """Return CORS allowed origins from env with safe environment defaults."""
    raw_origins = get_env("CORS_ALLOW_ORIGINS", "") or ""
    parsed_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]

    if parsed_origins:
        return parsed_origins

    if app_env().strip().lower() in {"dev", "local"}:
        return ["http://localhost:5173", "http://127.0.0.1:5173"]

    ui_origin = (get_env("UI_ORIGIN", "") or "").strip()
    if ui_origin:
        return [ui_origin]

    logger.warning(
        "cors_allow_origins_empty_in_prod app_env=%s; define CORS_ALLOW_ORIGINS or UI_ORIGIN",
        app_env(),
    )

    return []


def transactions_page_size() -> int:
    """Return the transactions list page size, falling back on invalid values."""
    raw_value = (get_env("TRANSACTIONS_PAGE_SIZE", "") or "").strip()
    if not raw_value:
        return _DEFAULT_PAGE_SIZE
    try:
        page_size = int(raw_value)
    except ValueError:
        logger.warning("transactions_page_size_invalid value=%s", raw_value)
        return _DEFAULT_PAGE_SIZE
    if page_size < 1:
        logger.warning("transactions_page_size_invalid value=%s", raw_value)
        return _DEFAULT_PAGE_SIZE
    return page_size


def carbon_tips_model() -> str:
    """Return configured model for carbon tips with safe default."""
    return (
        get_env("CARBON_TIPS_MODEL", _DEFAULT_CARBON_TIPS_MODEL) or _DEFAULT_CARBON_TIPS_MODEL
    ).strip() or _DEFAULT_CARBON_TIPS_MODEL


def openai_api_key() -> str | None:
    """Return OpenAI API key when configured."""
    return get_env("OPENAI_API_KEY")


def supabase_url() -> str | None:
    """Return Supabase URL when configured."""
    return get_env("SUPABASE_URL")


def supabase_service_role_key() -> str | None:
    """Return Supabase service role key when configured."""
    return get_env("SUPABASE_SERVICE_ROLE_KEY")


def supabase_anon_key() -> str | None:
    """Return Supabase anon key when configured."""
    return get_env("SUPABASE_ANON_KEY")
