import json
import logging
from datetime import datetime, timezone

import httpx
import pytest

from shared.clients.vault.models.Document import Document
from shared.clients.vault.models.Folder import Folder
from shared.clients.vault.ragbox.VaultClientRagbox import VaultClientRagbox
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger
from services.vault_explorer.notifications.Notifier import LoggingNotifier

BASE_URL = "http://vault.test"
NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def vault_env(monkeypatch):
    monkeypatch.setenv("VAULT_RAGBOX_BASE_URL", BASE_URL)
    monkeypatch.setenv("VAULT_RAGBOX_API_KEY", "secret-token")
    monkeypatch.delenv("VAULT_RAGBOX_API_PREFIX", raising=False)
    monkeypatch.delenv("VAULT_GET_RETRIES", raising=False)
    monkeypatch.delenv("EXPLORER_QUICK_ACCESS_SCOPE", raising=False)
    monkeypatch.setenv("VAULT_TIMEOUT", "5")


@pytest.fixture
def helper_config(vault_env) -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("sovereign_explorer.tests")))


@pytest.fixture
def notifier(helper_config) -> LoggingNotifier:
    return LoggingNotifier(helper_config=helper_config)


class VaultBackend:
    """Scripted backend for httpx.MockTransport; records every request it receives."""

    def __init__(self):
        self.routes: dict[tuple[str, str], object] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, response) -> None:
        """``response`` is an httpx.Response, a JSON-able body, or a callable taking the request."""
        self.routes[(method.upper(), path)] = response

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"error": "Not found"})
        if callable(response):
            response = response(request)
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)


@pytest.fixture
def backend() -> VaultBackend:
    return VaultBackend()


@pytest.fixture
async def vault_client(helper_config, backend):
    client = VaultClientRagbox(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(backend.handler))
    yield client
    await client.close()


def json_body(request: httpx.Request) -> dict:
    return json.loads(request.content) if request.content else {}


def make_document(document_id: str, name: str | None = None, **kwargs) -> Document:
    kwargs.setdefault("updated_at", NOW)
    return Document(engine="Ragbox", id=document_id, name=name or f"{document_id}.pdf", **kwargs)


def make_folder(folder_id: str, name: str | None = None, **kwargs) -> Folder:
    return Folder(engine="Ragbox", id=folder_id, name=name or folder_id, **kwargs)
