"""
Shared fixtures for integration tests.

Runs the real application (lifespan, dependencies, broker, tracker and
Synapse adapter) with only the network replaced by a fake Synapse.
"""

from collections.abc import Generator, Iterator
from contextlib import contextmanager

import httpx
import pytest
from fastapi.testclient import TestClient
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from synapse_signup.api.main import app
from synapse_signup.config.settings import get_settings
from tests.fakes import SERVER, SHARED_SECRET, TOKEN, FakeSynapse


@pytest.fixture
def settings_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Configure the app through environment variables, as in production."""
    monkeypatch.setenv("MATRIX_TOKEN", TOKEN)
    monkeypatch.setenv("MATRIX_SERVER", SERVER + "/")
    monkeypatch.setenv("MATRIX_SHARED_SECRET", SHARED_SECRET)
    monkeypatch.setenv("ABUSE_MAX_FAILURES", "3")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@contextmanager
def running_app(fake_synapse: FakeSynapse, behind_proxy: bool = True) -> Iterator[TestClient]:
    """
    Start the app and point its HTTP client at the fake Synapse.

    With ``behind_proxy`` the app sits behind uvicorn's proxy headers
    middleware trusting the test client, as when deployed behind a reverse
    proxy; otherwise clients talk to the app directly.
    """
    asgi_app = ProxyHeadersMiddleware(app, trusted_hosts="testclient") if behind_proxy else app
    with TestClient(asgi_app) as test_client:
        lifespan_client = app.state.http_client
        fake_client = httpx.AsyncClient(transport=fake_synapse.transport())
        app.state.http_client = fake_client
        try:
            yield test_client
        finally:
            app.state.http_client = lifespan_client
            test_client.portal.call(fake_client.aclose)


@pytest.fixture
def client(settings_env: None, fake_synapse: FakeSynapse) -> Generator[TestClient, None, None]:
    """Test client behind a trusted proxy, with a fresh abuse tracker."""
    with running_app(fake_synapse) as test_client:
        yield test_client


@pytest.fixture
def direct_client(
    settings_env: None, fake_synapse: FakeSynapse
) -> Generator[TestClient, None, None]:
    """Test client connecting straight to the app, with no proxy in front."""
    with running_app(fake_synapse, behind_proxy=False) as test_client:
        yield test_client
