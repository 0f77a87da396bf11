import logging

from fastapi.testclient import TestClient

from navigator import main
from navigator.config import Settings
from navigator.errors import NotFoundError, UpstreamError
from navigator.logging_config import configure_logging


class TestMain:
    def test_health_check(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}

    def test_navigator_error_uses_envelope(self, client):
        app = client.app

        @app.get("/_test/upstream-error")
        def _raise_upstream_error():
            raise UpstreamError("Pendle SDK API error (422): bad input", "pendle", 422)

        r = client.get("/_test/upstream-error")
        assert r.status_code == 422
        assert r.json() == {"success": False, "error": "Pendle SDK API error (422): bad input"}

    def test_not_found_error_is_404(self, client):
        app = client.app

        @app.get("/_test/not-found")
        def _raise_not_found():
            raise NotFoundError("No portfolio data returned for address")

        r = client.get("/_test/not-found")
        assert r.status_code == 404
        assert r.json()["error"] == "No portfolio data returned for address"

    def test_unknown_route_uses_envelope(self, client):
        r = client.get("/api/nope")
        assert r.status_code == 404
        assert r.json() == {"success": False, "error": "Not Found"}

    def test_malformed_json_is_400(self, client):
        r = client.post(
            "/api/pendle/swap",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 400
        assert r.json() == {"success": False, "error": "Invalid JSON body"}

    def test_wrong_field_type_is_400(self, client):
        r = client.post("/api/pendle/swap", json={"chainId": "base"})
        assert r.status_code == 400
        body = r.json()
        assert body["success"] is False
        assert body["error"].startswith("Invalid chainId")

    def test_openapi_contains_api_routes(self, client):
        r = client.get("/openapi.json")
        assert r.status_code == 200

        paths = r.json()["paths"]
        for path in (
            "/api/1inch/quote",
            "/api/1inch/swap",
            "/api/1inch/approve",
            "/api/pendle/swap",
            "/api/pendle/liquidity",
            "/api/pendle/mint",
            "/api/pendle/redeem",
            "/api/pendle/pools",
            "/api/pendle/recommend",
            "/api/pendle/positions",
            "/api/octav-portfolio",
            "/api/octav/historical",
            "/api/strategy/recommend",
        ):
            assert path in paths

    def test_openapi_metadata(self, client):
        schema = client.get("/openapi.json").json()
        assert schema["info"]["title"] == "Yield Navigator API"
        assert schema["info"]["version"] == "0.1.0"

    def test_settings_and_registry_on_app_state(self, client, settings, registry):
        assert client.app.state.settings is settings
        assert client.app.state.registry is registry

    def test_lifespan_opens_and_closes_providers(self, settings):
        app = main.create_app(settings=settings)
        registry = app.state.registry

        with TestClient(app):
            assert all(p._http is not None for p in registry.all().values())
        assert all(p._http is None for p in registry.all().values())

    def test_run_uses_default_env(self, monkeypatch):
        calls = {}

        def fake_run(app_str, host, port, reload):
            calls["app_str"] = app_str
            calls["host"] = host
            calls["port"] = port
            calls["reload"] = reload

        # Patch uvicorn.run that is imported inside main.run()
        monkeypatch.setattr("uvicorn.run", fake_run, raising=True)
        monkeypatch.delenv("PORT", raising=False)
        monkeypatch.delenv("RELOAD", raising=False)

        main.run()

        assert calls == {
            "app_str": "navigator.main:app",
            "host": "0.0.0.0",
            "port": 8000,
            "reload": False,
        }

    def test_run_reads_env_vars(self, monkeypatch):
        calls = {}

        def fake_run(app_str, host, port, reload):
            calls.update(app_str=app_str, host=host, port=port, reload=reload)

        monkeypatch.setattr("uvicorn.run", fake_run, raising=True)
        monkeypatch.setenv("PORT", "3001")
        monkeypatch.setenv("RELOAD", "true")

        main.run()

        assert calls["port"] == 3001
        assert calls["reload"] is True


class TestLogging:
    def test_verbose_logging_enables_debug(self):
        logger = configure_logging(Settings(_env_file=None, verbose_logging=True))
        assert logger.name == "navigator"
        assert logger.level == logging.DEBUG

    def test_log_level_from_settings(self):
        logger = configure_logging(Settings(_env_file=None, log_level="warning"))
        assert logger.level == logging.WARNING

    def test_unknown_log_level_falls_back_to_info(self):
        logger = configure_logging(Settings(_env_file=None, log_level="chatty"))
        assert logger.level == logging.INFO

    def test_handler_added_once(self):
        configure_logging(Settings(_env_file=None))
        configure_logging(Settings(_env_file=None))
        assert len(logging.getLogger("navigator").handlers) == 1
