"""
Shared fixtures.

The remote ledger is replaced by FakeWalletServer behind
httpx.MockTransport; no test touches the network.
"""

import inspect
import json
from typing import Any, Callable, Optional

import httpx
import pytest
from jose import jwt

from ewallet.auth import AccessGate, SessionStore
from ewallet.ledger import LedgerViewModel
from ewallet.services.gateway import RemoteGateway
from ewallet.services.storage import InMemoryCredentialStorage
from ewallet.transactions import TransactionSubmitter


API_BASE = "http://wallet.test/api"


def make_token(username: str = "alice") -> str:
    return jwt.encode({"sub": username}, "test-secret", algorithm="HS256")


class FakeWalletServer:
    """Route table plus a log of every request received."""

    def __init__(self):
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], Any]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, handler: Callable[[httpx.Request], Any]) -> None:
        self.routes[(method, path)] = handler

    def reply(
        self,
        method: str,
        path: str,
        body: Any = None,
        status_code: int = 200,
        text: Optional[str] = None,
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status_code, text=text)
            if body is None:
                return httpx.Response(status_code)
            return httpx.Response(status_code, json=body)

        self.on(method, path, handler)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        handler = self.routes.get((request.method, path))
        if handler is None:
            return httpx.Response(404)
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.removeprefix("/api") == path]

    def last_json(self, path: str) -> Any:
        return json.loads(self.requests_to(path)[-1].content)


def entry(
    entry_id: int,
    entry_type: str,
    amount: str,
    timestamp: str,
    sender: Optional[str] = None,
    receiver: Optional[str] = None,
) -> dict[str, Any]:
    """A ledger record shaped like the remote service returns it."""
    return {
        "id": entry_id,
        "type": entry_type,
        "amount": amount,
        "timestamp": timestamp,
        "senderUsername": sender,
        "receiverUsername": receiver,
        "balanceBefore": "0.00",
        "balanceAfter": "0.00",
    }


@pytest.fixture
def server() -> FakeWalletServer:
    return FakeWalletServer()


@pytest.fixture
def storage() -> InMemoryCredentialStorage:
    return InMemoryCredentialStorage()


@pytest.fixture
def gateway(server, storage) -> RemoteGateway:
    return RemoteGateway(
        storage,
        base_url=API_BASE,
        timeout_seconds=5,
        transport=httpx.MockTransport(server),
    )


@pytest.fixture
def session_store(gateway, storage) -> SessionStore:
    return SessionStore(gateway, storage)


@pytest.fixture
def signed_in_store(session_store, storage) -> SessionStore:
    """A session that resolved to AUTHENTICATED as alice."""
    storage.set(make_token("alice"))
    session_store.initialize()
    return session_store


@pytest.fixture
def access_gate(session_store) -> AccessGate:
    return AccessGate(session_store)


@pytest.fixture
def submitter(gateway) -> TransactionSubmitter:
    return TransactionSubmitter(gateway)


@pytest.fixture
def ledger(gateway, signed_in_store) -> LedgerViewModel:
    return LedgerViewModel(gateway, signed_in_store, summary_window=5)
