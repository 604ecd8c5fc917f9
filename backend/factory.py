"""Composition root for backend services."""

from __future__ import annotations

import logging

from backend.db.supabase_client import SupabaseClient, SupabaseSettings
from backend.repositories.profiles_repository import (
    InMemoryProfilesRepository,
    ProfilesRepository,
    SupabaseProfilesRepository,
)
from backend.repositories.transactions_repository import (
    InMemoryTransactionsRepository,
    SupabaseTransactionsRepository,
    TransactionsRepository,
)
from backend.services.profile_service import ProfileService
from backend.services.transaction_service import TransactionService
from shared import config


logger = logging.getLogger(__name__)


def _build_supabase_client() -> SupabaseClient | None:
    supabase_url = config.supabase_url()
    supabase_key = config.supabase_service_role_key()
    if not supabase_url or not supabase_key:
        return None
    return SupabaseClient(
        settings=SupabaseSettings(
            url=supabase_url,
            service_role_key=supabase_key,
            anon_key=config.supabase_anon_key(),
        )
    )


def build_transactions_repository() -> TransactionsRepository:
    """Return the Supabase repository when configured, else an in-memory store."""

    supabase_client = _build_supabase_client()
    if supabase_client is not None:
        return SupabaseTransactionsRepository(client=supabase_client)

    logger.warning("supabase_not_configured using in-memory transactions repository")
    return InMemoryTransactionsRepository()


def build_profiles_repository() -> ProfilesRepository:
    supabase_client = _build_supabase_client()
    if supabase_client is not None:
        return SupabaseProfilesRepository(client=supabase_client)

    logger.warning("supabase_not_configured using in-memory profiles repository")
    return InMemoryProfilesRepository()


def build_transaction_service() -> TransactionService:
    return TransactionService(repository=build_transactions_repository())


def build_profile_service() -> ProfileService:
    return ProfileService(repository=build_profiles_repository())
