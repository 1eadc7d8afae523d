"""
Pytest configuration and shared fixtures.

Provides stubbed provider APIs, dispatcher fixtures, and environment setup
for the Funmi Gateway test suite.

IMPORTANT: Environment variables must be set BEFORE importing app modules
that use pydantic-settings, as Settings validates on import.
"""

import os

# Set test environment variables before importing app modules
os.environ["GROQ_API_KEY"] = "test-groq-key"
os.environ["HUGGINGFACE_API_KEY"] = "test-hf-key"
os.environ["FLUX_API_KEY"] = "test-flux-key"
os.environ["STABILITY_API_KEY"] = "test-stability-key"
os.environ["EXA_API_KEY"] = "test-exa-key"
os.environ["SERPER_API_KEY"] = "test-serper-key"
os.environ["GOOGLE_CSE_KEY"] = "test-cse-key"
os.environ["GOOGLE_CSE_ID"] = "test-cx"
os.environ["CLASSIFIER_STRATEGY"] = "keyword"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DEBUG"] = "false"

# Now safe to import everything else
from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "asyncio: mark test as async")
    config.addinivalue_line(
        "markers", "integration: mark test as requiring real API calls"
    )
    config.addinivalue_line("markers", "slow: mark test as slow-running")


PROVIDER_HOSTS = {
    "api.groq.com": "groq",
    "api-inference.huggingface.co": "huggingface",
    "api.together.xyz": "flux",
    "api.stability.ai": "stability",
    "api.exa.ai": "exa",
    "google.serper.dev": "serper",
    "www.googleapis.com": "google_cse",
}


class FakeProviders:
    """
    Stubbed provider APIs behind an httpx.MockTransport.

    Responses are registered per provider name; every request that reaches
    the transport is recorded in order. Providers without a registered
    response answer 500.

    Usage:
        fake.respond("groq", json={"choices": [...]})
        fake.fail("huggingface", httpx.ReadTimeout)
        assert fake.calls() == ["groq"]
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def respond(
        self,
        provider: str,
        status_code: int = 200,
        json=None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                status_code, json=json, content=content, headers=headers
            )

        self._handlers[provider] = handler

    def fail(self, provider: str, exc_type: type[httpx.RequestError]) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc_type("stubbed failure", request=request)

        self._handlers[provider] = handler

    def calls(self) -> list[str]:
        """Provider names in the order they were called."""
        return [PROVIDER_HOSTS.get(r.url.host, r.url.host) for r in self.requests]

    def last_request(self, provider: str) -> httpx.Request:
        for request in reversed(self.requests):
            if PROVIDER_HOSTS.get(request.url.host) == provider:
                return request
        raise AssertionError(f"{provider} was never called")

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        provider = PROVIDER_HOSTS.get(request.url.host, request.url.host)
        handler = self._handlers.get(provider)
        if handler is None:
            return httpx.Response(500, json={"error": f"{provider} not stubbed"})
        return handler(request)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """
    Clear the cached settings between tests.

    Tests that change environment variables get a fresh Settings.
    """
    from app.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Settings built from the test environment."""
    from app.config import Settings

    return Settings()


@pytest.fixture
def registry(settings):
    """Provider registry built from the test settings."""
    from app.registry import build_provider_registry

    return build_provider_registry(settings)


@pytest.fixture
def fake_providers():
    """Fresh stubbed provider APIs."""
    return FakeProviders()


@pytest.fixture
def provider_client(settings, fake_providers):
    """ProviderClient whose traffic goes to the stubbed provider APIs."""
    from app.config import settings_secret_resolver
    from app.dispatcher import ProviderClient

    return ProviderClient(
        settings_secret_resolver(settings),
        timeout=5.0,
        system_prompt="You are Funmi.",
        transport=fake_providers.transport,
    )


@pytest.fixture
def dispatcher(registry, provider_client):
    """Dispatcher wired to the stubbed provider APIs."""
    from app.dispatcher import Dispatcher

    return Dispatcher(
        registry,
        provider_client,
        image_size="512x512",
        file_max_chars=100,
    )


@pytest.fixture
def provider_payloads():
    """Successful response bodies for every provider kind."""
    return {
        "groq": {"choices": [{"message": {"role": "assistant", "content": "Hi from Groq"}}]},
        "huggingface": [{"generated_text": "Hello"}],
        "flux": {"data": [{"b64_json": "Zmx1eA=="}]},
        "stability": {"artifacts": [{"base64": "abcd", "finishReason": "SUCCESS"}]},
        "exa": {"results": [{"title": "Paper", "highlights": ["Transformers use attention."]}]},
        "serper": {"organic": [{"title": "Accra", "snippet": "Accra is the capital of Ghana."}]},
        "google_cse": {"items": [{"title": "Accra", "snippet": "Capital city of Ghana."}]},
    }


@pytest.fixture
def test_client(dispatcher):
    """
    Create a FastAPI TestClient whose dispatcher calls stubbed providers.

    The lifespan still runs (settings, classifier, stores); only the
    dispatcher dependency is overridden.
    """
    from app.main import app, get_dispatcher

    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def session_id(test_client):
    """Id of a fresh session for the development user."""
    response = test_client.post("/api/session", json={"session_name": "Test Chat"})
    assert response.status_code == 200
    return response.json()["session_id"]
