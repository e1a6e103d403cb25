import os

# Avant l'import de l'app: pas de Redis pendant les tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from typing import Any, Callable, Dict, Generator
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from gateway import config
from gateway.app import app as fastapi_app
from gateway.dependencies import get_reconciler
from gateway.payments.reconciler import OrderReconciler
from gateway.signature.codec import SignatureCodec

TEST_PASSPHRASE = "jt7NOE43FZPn"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/tests/unit/" in nodeid or nodeid.startswith("tests/unit/") or nodeid.startswith("unit/"):
            item.add_marker(pytest.mark.unit)
        elif "/tests/integration/" in nodeid or nodeid.startswith("tests/integration/") or nodeid.startswith("integration/"):
            item.add_marker(pytest.mark.integration)


class FakeRepository:
    """Tables orders/payments en mémoire, mêmes signatures que gateway.payments.repository."""

    def __init__(self):
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.payments: Dict[str, Dict[str, Any]] = {}
        self.upsert_error: Exception | None = None
        self.update_error: Exception | None = None
        self.upsert_calls = 0

    def add_order(self, order_id: str, user_id: str, total: float = 100.0, status: str = "pending"):
        self.orders[order_id] = {"id": order_id, "user_id": user_id, "total": total, "status": status}

    def update_order_status(self, order_id: str, user_id: str, status: str) -> int:
        if self.update_error:
            raise self.update_error
        order = self.orders.get(order_id)
        if not order or order["user_id"] != user_id:
            return 0
        order["status"] = status
        return 1

    def upsert_payment(self, row: Dict[str, Any]) -> None:
        self.upsert_calls += 1
        if self.upsert_error:
            raise self.upsert_error
        self.payments[row["order_id"]] = dict(row)


@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture(autouse=True)
def _payfast_config(monkeypatch):
    """Configuration PayFast déterministe (sandbox, passphrase de test, encodages par défaut)."""
    monkeypatch.setattr(config, "PAYFAST_PASSPHRASE", TEST_PASSPHRASE)
    monkeypatch.setattr(config, "PAYFAST_SIGNING_SPACE_ENCODING", "percent")
    monkeypatch.setattr(config, "PAYFAST_ITN_SPACE_ENCODING", "plus")
    monkeypatch.setattr(config, "PAYFAST_SANDBOX", True)
    monkeypatch.setattr(config, "PAYFAST_MERCHANT_ID", "10000100")
    monkeypatch.setattr(config, "PAYFAST_MERCHANT_KEY", "46f0cd694581a")
    monkeypatch.setattr(config, "PAYFAST_CURRENCY", "ZAR")

# Aucun accès réseau à Supabase pendant les tests
@pytest.fixture(scope="function", autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("gateway.infra.supabase_client.get_service_supabase", lambda: MagicMock())

@pytest.fixture
def fake_repo() -> FakeRepository:
    repo = FakeRepository()
    repo.add_order("ord-123", "usr-9", total=100.0)
    return repo

@pytest.fixture
def webhook_client(app, client, fake_repo):
    """Client dont le reconciler écrit dans le FakeRepository."""
    app.dependency_overrides[get_reconciler] = lambda: OrderReconciler(repository=fake_repo, currency="ZAR")
    yield client
    app.dependency_overrides.pop(get_reconciler, None)

@pytest.fixture
def itn_codec() -> SignatureCodec:
    return SignatureCodec(TEST_PASSPHRASE, "plus")

@pytest.fixture
def signed_itn(itn_codec) -> Callable[..., Dict[str, str]]:
    """Fabrique une notification ITN signée; les kwargs remplacent/ajoutent des champs."""
    def _make(**overrides: str) -> Dict[str, str]:
        params = {
            "m_payment_id": "ord-123",
            "pf_payment_id": "1089250",
            "payment_status": "COMPLETE",
            "item_name": "Fresh Produce Box",
            "amount_gross": "100.00",
            "amount_fee": "-2.30",
            "amount_net": "97.70",
            "custom_str1": "ord-123",
            "custom_str2": "usr-9",
            "name_first": "Thandi",
            "email_address": "thandi@example.com",
            "merchant_id": "10000100",
        }
        params.update(overrides)
        params["signature"] = itn_codec.sign(params)
        return params
    return _make
