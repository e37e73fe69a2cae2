from crm_portal.core.config import Config
from crm_portal.services import supabase_service


def test_root_lists_endpoints(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["endpoints"]["verify"] == "/api/portal/verify"


def test_health_reports_unhealthy_without_config(client, monkeypatch):
    monkeypatch.setattr(Config, "SUPABASE_URL", "")
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "unhealthy"
    assert "SUPABASE_URL" in body["error"]


def test_health_reports_healthy(client, monkeypatch):
    monkeypatch.setattr(Config, "SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setattr(Config, "SUPABASE_ANON_KEY", "anon")
    monkeypatch.setattr(Config, "SUPABASE_SERVICE_KEY", "service")
    monkeypatch.setattr(supabase_service, "ping", lambda: None)
    assert client.get("/health").json()["status"] == "healthy"


def test_allowed_origins_are_deduplicated(monkeypatch):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://a.example, https://a.example,https://b.example")
    origins = Config.allowed_origins(["https://b.example"])
    assert origins[:2] == ["https://a.example", "https://b.example"]
    assert len(origins) == len(set(origins))
