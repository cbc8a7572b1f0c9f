"""Shared fixtures: an in-memory client site, a controller, and a transport between them."""

from __future__ import annotations

from types import SimpleNamespace
from urllib.parse import urlsplit

import fakeredis
import pytest
import requests

from sitegate.client.app import create_app as create_client_app
from sitegate.client.state import MemoryStateStore
from sitegate.config import ClientSettings, ControllerSettings
from sitegate.controller.app import create_app as create_controller_app
from sitegate.controller.dispatcher import WebhookDispatcher
from sitegate.controller.registry import MemoryRegistry
from sitegate.status import MaintenancePresentation

SECRET = "abc123"
WEBHOOK = "/client-controller/v1/update-status"


class FlaskTransport:
    """Stands in for ``requests.Session``, delivering POSTs to a Flask test client."""

    def __init__(self, flask_client, remote_addr: str = "127.0.0.1"):
        self.flask_client = flask_client
        self.remote_addr = remote_addr
        self.calls: list[dict] = []

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        result = self.flask_client.post(
            urlsplit(url).path,
            data=data,
            headers=headers,
            environ_base={"REMOTE_ADDR": self.remote_addr},
        )
        response = requests.Response()
        response.status_code = result.status_code
        response._content = result.get_data()
        response.headers.update(dict(result.headers))
        response.encoding = "utf-8"
        response.url = url
        return response


@pytest.fixture
def client_settings() -> ClientSettings:
    return ClientSettings(api_key=SECRET, site_name="test-site", secret_key="test-secret-key")


@pytest.fixture
def state_store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def client_app(client_settings, state_store):
    app = create_client_app(settings=client_settings, store=state_store, config={"TESTING": True})
    return app


@pytest.fixture
def site(client_app):
    return client_app.test_client()


@pytest.fixture
def registry() -> MemoryRegistry:
    return MemoryRegistry()


@pytest.fixture
def fleet(registry):
    """One registered site plus a running client site that shares its secret."""
    record = registry.create(
        "Example Site",
        "https://example.test/",
        MaintenancePresentation(title="Back soon", text="We are upgrading."),
    )
    store = MemoryStateStore()
    app = create_client_app(
        settings=ClientSettings(api_key=record.secret, site_name="example", secret_key="k"),
        store=store,
        config={"TESTING": True},
    )
    transport = FlaskTransport(app.test_client())
    return SimpleNamespace(record=record, store=store, site=app.test_client(), transport=transport)


@pytest.fixture
def dispatcher(fleet) -> WebhookDispatcher:
    return WebhookDispatcher(session=fleet.transport)


@pytest.fixture
def controller_app(registry, dispatcher):
    return create_controller_app(
        settings=ControllerSettings(page_size=2, secret_key="test-secret-key"),
        registry=registry,
        dispatcher=dispatcher,
        config={"TESTING": True},
    )


@pytest.fixture
def operator(controller_app):
    return controller_app.test_client()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
