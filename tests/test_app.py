from fastapi.testclient import TestClient

from catalog_api.config import Settings
from catalog_api.main import create_app
from catalog_api.negotiation import NegotiationPolicy


def test_lifespan_creates_tables_and_serves_games():
    app = create_app(Settings(database_url="sqlite://", cors_origin_patterns="https://a.com"))
    with TestClient(app) as client:
        created = client.post("/api/game/v2", json={"name": "Tunic", "year": 2022})
        assert created.status_code == 200
        listing = client.get("/api/game/v2", params={"mediaType": "json"})
        assert listing.json()["page"]["totalElements"] == 1


def test_app_exposes_registered_policies():
    app = create_app(Settings(database_url="sqlite://", cors_origin_patterns="https://a.com"))
    assert app.state.cors_policy.origin_patterns == ("https://a.com",)
    assert app.state.negotiation_policy == NegotiationPolicy()


def test_empty_origin_configuration_refuses_cross_origin_requests():
    app = create_app(Settings(database_url="sqlite://", cors_origin_patterns=""))
    with TestClient(app) as client:
        resp = client.options(
            "/api/game/v2",
            headers={"Origin": "https://a.com", "Access-Control-Request-Method": "GET"},
        )
    assert resp.status_code == 400
    assert "access-control-allow-origin" not in resp.headers


def test_custom_api_prefix_and_disabled_docs():
    app = create_app(
        Settings(database_url="sqlite://", api_prefix="/catalog", docs_enabled=False)
    )
    with TestClient(app) as client:
        assert client.get("/catalog/game/v2").status_code == 200
        assert client.get("/api/game/v2").status_code == 404
        assert client.get("/docs").status_code == 404
