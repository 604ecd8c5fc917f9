"""Repository adapters for the `public.profiles` table.

One profile row per auth user, keyed by the auth user id. Supabase creates the
row on sign-up; this backend only reads and updates it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Protocol

from backend.db.supabase_client import SupabaseClient
from shared.models import ProfileRecord, ProfileUpdateRequest


_TABLE = "profiles"
_SELECT_COLUMNS = "id,full_name,email,mobile_number,avatar_url,budget,created_at,updated_at"


class ProfilesRepository(Protocol):
    def get_profile(self, user_id: str) -> ProfileRecord:
        """Return the profile of an auth user."""

    def update_profile(self, user_id: str, request: ProfileUpdateRequest) -> ProfileRecord:
        """Apply the provided fields and stamp `updated_at`."""


def _profile_changes(request: ProfileUpdateRequest) -> dict[str, Any]:
    changes = request.model_dump(exclude_none=True)
    if not changes:
        raise ValueError("No fields to update")
    changes["updated_at"] = datetime.now(timezone.utc)
    return changes


class InMemoryProfilesRepository:
    """In-memory profiles used for local development and tests.

    A blank profile is created on first access, standing in for the sign-up
    trigger of the hosted database.
    """

    def __init__(self, seed: list[ProfileRecord] | None = None) -> None:
        self._profiles: dict[str, ProfileRecord] = {profile.id: profile for profile in seed or []}

    def get_profile(self, user_id: str) -> ProfileRecord:
        profile = self._profiles.get(user_id)
        if profile is None:
            profile = ProfileRecord(id=user_id, created_at=datetime.now(timezone.utc))
            self._profiles[user_id] = profile
        return profile

    def update_profile(self, user_id: str, request: ProfileUpdateRequest) -> ProfileRecord:
        current = self.get_profile(user_id)
        updated = ProfileRecord.model_validate({**current.model_dump(), **_profile_changes(request)})
        self._profiles[user_id] = updated
        return updated


class SupabaseProfilesRepository:
    """Supabase repository for profile lookups and updates."""

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    @staticmethod
    def _serialize_profile_value(value: Any) -> Any:
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    @staticmethod
    def _parse_profile(row: dict[str, Any]) -> ProfileRecord:
        return ProfileRecord.model_validate(
            {
                "id": str(row.get("id")),
                **{field: row.get(field) for field in _SELECT_COLUMNS.split(",") if field != "id"},
            }
        )

    def get_profile(self, user_id: str) -> ProfileRecord:
        rows, _ = self._client.get_rows(
            table=_TABLE,
            query={"select": _SELECT_COLUMNS, "id": f"eq.{user_id}", "limit": 1},
            with_count=False,
            use_anon_key=False,
        )
        if not rows:
            raise ValueError("Profile not found")
        return self._parse_profile(rows[0])

    def update_profile(self, user_id: str, request: ProfileUpdateRequest) -> ProfileRecord:
        payload = {
            field: self._serialize_profile_value(value)
            for field, value in _profile_changes(request).items()
        }
        rows = self._client.patch_rows(
            table=_TABLE,
            query={"id": f"eq.{user_id}", "select": _SELECT_COLUMNS},
            payload=payload,
            use_anon_key=False,
        )
        if not rows:
            raise ValueError("Profile not found")
        return self._parse_profile(rows[0])
