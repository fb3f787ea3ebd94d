from unittest.mock import MagicMock

from backend.health import service as health_service

def test_health_supabase_info_queries_tenants(monkeypatch):
    db = MagicMock()
    monkeypatch.setattr("backend.infra.supabase_client.get_service_supabase", lambda: db)
    info = health_service.health_supabase_info()
    assert info["connect_ok"] is True
    db.table.assert_called_with("tenants")

def test_health_supabase_info_reports_failure(monkeypatch):
    def _down():
        raise RuntimeError("Supabase non configuré")

    monkeypatch.setattr("backend.infra.supabase_client.get_service_supabase", _down)
    info = health_service.health_supabase_info()
    assert info["connect_ok"] is False
    assert info["error"] == "RuntimeError"
