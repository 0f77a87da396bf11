import pytest
from fastapi.testclient import TestClient

from navigator.config import Settings
from navigator.main import create_app
from navigator.providers.registry import ProviderRegistry


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        oneinch_api_key="test-1inch-key",
        octav_api_key="test-octav-key",
        historical_request_delay_seconds=0,
    )


@pytest.fixture()
def registry(settings) -> ProviderRegistry:
    """Real providers; tests swap individual methods for AsyncMocks."""
    return ProviderRegistry(settings)


@pytest.fixture()
def client(settings, registry) -> TestClient:
    """
    Creates a fresh FastAPI app and TestClient for each test.
    This avoids shared state between tests.
    """
    app = create_app(settings=settings, registry=registry)
    return TestClient(app)


@pytest.fixture()
def make_client(registry):
    """Build a client with overridden settings, e.g. with a credential unset."""

    def _make(**overrides) -> TestClient:
        values = {
            "_env_file": None,
            "oneinch_api_key": "test-1inch-key",
            "octav_api_key": "test-octav-key",
            "historical_request_delay_seconds": 0,
            **overrides,
        }
        return TestClient(create_app(settings=Settings(**values), registry=registry))

    return _make
