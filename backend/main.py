"""Backend entrypoint."""

from backend.factory import build_profile_service, build_transaction_service


def create_backend_services() -> dict[str, object]:
    """Factory for backend service objects used by API or local integrations."""
    return {
        "transaction_service": build_transaction_service(),
        "profile_service": build_profile_service(),
    }
