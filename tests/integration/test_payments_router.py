from types import SimpleNamespace
from urllib.parse import parse_qsl, urlparse

import pytest

from gateway import config
from gateway.errors import StorageUnavailable
from gateway.payments.builder import PAYFAST_PROCESS_URLS
from gateway.signature.codec import SignatureCodec

PAYMENT_REQUEST = {
    "amount": "100",
    "item_name": "Fresh Produce Box",
    "order_id": "ord-123",
    "user_id": "usr-9",
    "email_address": "thandi@example.com",
}


@pytest.fixture(autouse=True)
def _urls(monkeypatch):
    monkeypatch.setattr(config, "BASE_URL", "https://api.shop.example")
    monkeypatch.setattr(config, "WEB_APP_URL", "https://shop.example")
    monkeypatch.setattr(config, "MOBILE_APP_SCHEME", "farmersbracket")


def test_payment_url_returns_signed_fields(client):
    r = client.post("/api/v1/payfast/payment-url", json=PAYMENT_REQUEST)
    assert r.status_code == 200
    body = r.json()
    fields = body["fields"]

    assert body["action"] == PAYFAST_PROCESS_URLS["sandbox"]
    assert fields["amount"] == "100.00"
    assert fields["notify_url"] == "https://api.shop.example/payfast/webhook"
    assert fields["return_url"] == "https://api.shop.example/payment-return"
    assert fields["cancel_url"] == "https://api.shop.example/payment-cancel"
    assert fields["custom_str1"] == "ord-123"
    assert fields["custom_str2"] == "usr-9"
    assert SignatureCodec(config.PAYFAST_PASSPHRASE, "percent").verify(fields, fields["signature"])

    parsed = urlparse(body["url"])
    assert body["url"].startswith(body["action"] + "?")
    assert dict(parse_qsl(parsed.query)) == fields


def test_payment_url_production(client, monkeypatch):
    monkeypatch.setattr(config, "PAYFAST_SANDBOX", False)
    r = client.post("/api/v1/payfast/payment-url", json=PAYMENT_REQUEST)
    assert r.json()["action"] == PAYFAST_PROCESS_URLS["production"]


def test_payment_url_keeps_explicit_urls(client):
    r = client.post("/api/v1/payfast/payment-url", json={**PAYMENT_REQUEST, "notify_url": "https://hooks.example/itn"})
    assert r.json()["fields"]["notify_url"] == "https://hooks.example/itn"


def test_payment_url_rejects_non_positive_amount(client):
    r = client.post("/api/v1/payfast/payment-url", json={**PAYMENT_REQUEST, "amount": "0"})
    assert r.status_code == 400
    assert "detail" in r.json()


def test_payment_url_requires_user_id(client):
    payload = dict(PAYMENT_REQUEST)
    del payload["user_id"]
    r = client.post("/api/v1/payfast/payment-url", json=payload)
    assert r.status_code == 422


def test_payment_url_is_rate_limited(client, app, monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    app.state._rl_store = {}
    codes = [client.post("/api/v1/payfast/payment-url", json=PAYMENT_REQUEST).status_code for _ in range(11)]
    app.state._rl_store = {}
    assert codes[:10] == [200] * 10
    assert codes[10] == 429


def test_payment_return_redirects_to_web_app(client):
    r = client.get("/payment-return?custom_str1=ord-123&pf_payment_id=1089250", follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == "https://shop.example/payment-success?order_id=ord-123&pf_payment_id=1089250"


def test_payment_return_redirects_mobile_to_deep_link(client):
    r = client.get(
        "/payment-return?order_id=ord-123&pf_payment_id=1089250",
        headers={"user-agent": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0) Mobile/15E148"},
        follow_redirects=False,
    )
    assert r.status_code == 307
    assert r.headers["location"] == "farmersbracket://payment-success?order_id=ord-123&pf_payment_id=1089250"


def test_payment_return_requires_order_id(client):
    r = client.get("/payment-return", follow_redirects=False)
    assert r.status_code == 400
    assert r.text == "Missing order ID"


def test_payment_return_does_not_touch_storage(client, monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("storage must not be called")
    monkeypatch.setattr("gateway.payments.repository.update_order_status", _fail)
    r = client.get("/payment-return?custom_str1=ord-123", follow_redirects=False)
    assert r.status_code == 307


def test_payment_cancel_redirects(client):
    r = client.get("/payment-cancel?custom_str1=ord-123", follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == "https://shop.example/payment-cancelled?order_id=ord-123"

    r2 = client.get("/payment-cancel?custom_str1=ord-123", headers={"user-agent": "Android Mobile"}, follow_redirects=False)
    assert r2.headers["location"] == "farmersbracket://payment-cancelled?order_id=ord-123"


def test_payment_status_found(client, monkeypatch):
    monkeypatch.setattr(
        "gateway.payments.repository.get_order_status",
        lambda order_id: {"id": order_id, "status": "confirmed", "payment_status": "paid", "total": 100},
    )
    r = client.get("/payment-status/ord-123")
    assert r.status_code == 200
    assert r.json() == {"orderId": "ord-123", "status": "confirmed", "paymentStatus": "paid", "total": 100}


def test_payment_status_not_found(client, monkeypatch):
    monkeypatch.setattr("gateway.payments.repository.get_order_status", lambda order_id: None)
    r = client.get("/payment-status/ord-404")
    assert r.status_code == 404
    assert r.json() == {"detail": "Order not found"}


def test_payment_status_storage_unavailable(client, monkeypatch):
    def _down(order_id):
        raise StorageUnavailable()
    monkeypatch.setattr("gateway.payments.repository.get_order_status", _down)
    r = client.get("/payment-status/ord-123")
    assert r.status_code == 503


def test_create_payment_intent_returns_client_secret(client, monkeypatch):
    import stripe
    calls = {}
    def _create(**kwargs):
        calls.update(kwargs)
        return SimpleNamespace(id="pi_123", client_secret="pi_123_secret_abc")

    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setattr(stripe.PaymentIntent, "create", _create)

    r = client.post("/api/create-payment-intent", json={"amount": 10000, "currency": "ZAR"})
    assert r.status_code == 200
    assert r.json() == {"clientSecret": "pi_123_secret_abc"}
    assert calls == {"amount": 10000, "currency": "zar"}


def test_create_payment_intent_without_key(client, monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "")
    r = client.post("/api/create-payment-intent", json={"amount": 10000})
    assert r.status_code == 500
    assert r.json() == {"detail": "STRIPE_SECRET_KEY manquant"}


def test_create_payment_intent_stripe_error(client, monkeypatch):
    def _boom(**kwargs):
        raise RuntimeError("card rail down")
    monkeypatch.setattr("gateway.payments.stripe_client.create_payment_intent", _boom)
    r = client.post("/api/create-payment-intent", json={"amount": 10000})
    assert r.status_code == 500


def test_create_payment_intent_rejects_non_positive_amount(client):
    r = client.post("/api/create-payment-intent", json={"amount": 0})
    assert r.status_code == 422
