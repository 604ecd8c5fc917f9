"""Supabase Auth helpers: bearer token validation and password re-checks."""

from __future__ import annotations

import json
from uuid import UUID
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from shared import config


class UnauthorizedError(Exception):
    """Raised when a bearer token cannot be validated."""


REQUIRED_AUTH_USER_ID_FIELD = "id"


def _is_uuid_like(value: str) -> bool:
    try:
        UUID(value)
    except (ValueError, TypeError):
        return False
    return True


def _auth_settings() -> tuple[str, str]:
    supabase_url = (config.supabase_url() or "").rstrip("/")
    anon_key = config.supabase_anon_key()
    if not supabase_url or not anon_key:
        raise UnauthorizedError("Supabase auth is not configured")
    return supabase_url, anon_key


def get_user_from_bearer_token(token: str) -> dict[str, object]:
    """Return the Supabase auth user payload for a bearer token."""

    supabase_url, anon_key = _auth_settings()
    request = Request(
        url=f"{supabase_url}/auth/v1/user",
        headers={
            "apikey": anon_key,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        },
        method="GET",
    )

    try:
        with urlopen(request) as response:  # noqa: S310 - trusted Supabase URL from env
            if response.status != 200:
                raise UnauthorizedError("Unauthorized")
            payload = json.loads(response.read().decode("utf-8"))
            if not isinstance(payload, dict):
                raise UnauthorizedError("Unauthorized")
            user_id = payload.get(REQUIRED_AUTH_USER_ID_FIELD)
            if not isinstance(user_id, str) or not _is_uuid_like(user_id):
                raise UnauthorizedError("Unauthorized")
            return payload
    except HTTPError as exc:
        raise UnauthorizedError("Unauthorized") from exc
    except URLError as exc:
        raise UnauthorizedError("Unauthorized") from exc


def verify_password(*, email: str, password: str) -> bool:
    """Return whether Supabase accepts a password sign-in for email.

    This proves knowledge of the password by attempting a sign-in; the issued
    session is discarded.
    """

    supabase_url, anon_key = _auth_settings()
    request = Request(
        url=f"{supabase_url}/auth/v1/token?grant_type=password",
        data=json.dumps({"email": email, "password": password}).encode("utf-8"),
        headers={
            "apikey": anon_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        },
        method="POST",
    )

    try:
        with urlopen(request) as response:  # noqa: S310 - trusted Supabase URL from env
            return response.status == 200
    except HTTPError as exc:
        if 400 <= exc.code < 500:
            return False
        raise UnauthorizedError("Unable to verify password") from exc
    except URLError as exc:
        raise UnauthorizedError("Unable to verify password") from exc
