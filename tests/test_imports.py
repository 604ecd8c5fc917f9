from backend.main import create_backend_services
from backend.repositories.transactions_repository import InMemoryTransactionsRepository
from shared.models import ActiveTypeFilter, TransactionPage


def test_imports_succeed(monkeypatch) -> None:
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)

    services = create_backend_services()

    assert "transaction_service" in services
    assert "profile_service" in services
    assert isinstance(services["transaction_service"].repository, InMemoryTransactionsRepository)
    assert ActiveTypeFilter("income") is ActiveTypeFilter.INCOME
    assert TransactionPage(items=[], page=1, page_size=10, total=0, total_pages=0).page_size == 10
