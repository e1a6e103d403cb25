from datetime import datetime
from unittest.mock import MagicMock

from gateway import config


def test_health_root(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "OK"
    assert body["service"] == "PayFast Webhook Handler"
    datetime.fromisoformat(body["timestamp"])


def test_health_supabase_reports_tables(client, monkeypatch):
    monkeypatch.setattr(config, "SUPABASE_URL", "")
    supabase = MagicMock()
    supabase.table.return_value.select.return_value.limit.return_value.execute.return_value = MagicMock(data=[{"id": 1}])
    monkeypatch.setattr("gateway.infra.supabase_client.get_service_supabase", lambda: supabase)

    r = client.get("/health/supabase")

    assert r.status_code == 200
    info = r.json()
    assert info["connect_ok"] is True
    assert info["tables"] == {"orders": {"ok": True, "rows": 1}, "payments": {"ok": True, "rows": 1}}
    assert info["rate_limit"]["enabled"] is False


def test_health_supabase_reports_client_error(client, monkeypatch):
    monkeypatch.setattr(config, "SUPABASE_URL", "")
    def _missing():
        raise RuntimeError("SUPABASE_URL/SUPABASE_SERVICE_KEY manquants")
    monkeypatch.setattr("gateway.infra.supabase_client.get_service_supabase", _missing)

    info = client.get("/health/supabase").json()
    assert info["connect_ok"] is False
    assert "manquants" in info["error"]


def test_security_headers(client):
    r = client.get("/health")
    assert r.headers["x-content-type-options"] == "nosniff"
    assert r.headers["x-frame-options"] == "DENY"
