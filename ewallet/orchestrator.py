"""
Main Orchestrator for the E-Wallet Client

Wires the components together:

    credential storage ─┬─> RemoteGateway ──(401 event)──> SessionStore
                        └──────────────────────────────────> SessionStore
    SessionStore ──> AccessGate
    SessionStore ──(subscribe)──> LedgerViewModel
    RemoteGateway ──> TransactionSubmitter, LedgerViewModel

DESIGN DECISION: the credential slot has exactly one writer. The gateway
reads it to attach the bearer header but only reports a 401; the
SessionStore clears the slot in response.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

from ewallet.auth import AccessGate, SessionStore
from ewallet.config import Settings, get_settings
from ewallet.ledger import LedgerViewModel
from ewallet.observability import configure_logging, get_logger
from ewallet.services.gateway import RemoteGateway
from ewallet.services.storage import (
    CredentialStorageInterface,
    FileCredentialStorage,
    InMemoryCredentialStorage,
)
from ewallet.transactions import TransactionSubmitter


@dataclass
class AppComponents:
    """Everything one running client needs."""

    storage: CredentialStorageInterface
    gateway: RemoteGateway
    session_store: SessionStore
    access_gate: AccessGate
    submitter: TransactionSubmitter
    ledger: LedgerViewModel

    async def aclose(self) -> None:
        """Detach listeners and close the HTTP client."""
        self.ledger.close()
        self.session_store.close()
        await self.gateway.aclose()


def create_credential_storage(settings: Settings) -> CredentialStorageInterface:
    """
    Build the credential backend selected in settings.

    The memory backend gives every call its own slot, so each client
    (each browser session in the Streamlit app) has its own session.
    The file backend is one slot on disk shared by every client of the
    process; use it only for single-user local runs.
    """
    credentials = settings.credentials
    if credentials.backend == "memory":
        return InMemoryCredentialStorage()
    get_logger(__name__).warning(
        "credential_file_backend_shared",
        path=str(credentials.resolved_path),
    )
    return FileCredentialStorage(
        credentials.resolved_path,
        slot_name=credentials.slot_name,
    )


def create_app_components(
    settings: Optional[Settings] = None,
    credential_storage: Optional[CredentialStorageInterface] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    initialize: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; defaults to get_settings()
        credential_storage: Override the configured backend (tests)
        transport: httpx transport for the gateway (tests use MockTransport)
        initialize: Resolve the session from the credential slot right away

    Returns:
        AppComponents
    """
    settings = settings or get_settings()
    configure_logging(level=settings.app.log_level, json=settings.app.log_json)
    logger = get_logger(__name__)

    storage = credential_storage or create_credential_storage(settings)

    gateway = RemoteGateway(
        storage,
        base_url=settings.gateway.base_url,
        timeout_seconds=settings.gateway.timeout_seconds,
        transport=transport,
    )
    session_store = SessionStore(gateway, storage)
    components = AppComponents(
        storage=storage,
        gateway=gateway,
        session_store=session_store,
        access_gate=AccessGate(session_store),
        submitter=TransactionSubmitter(gateway),
        ledger=LedgerViewModel(
            gateway,
            session_store,
            summary_window=settings.app.summary_window,
        ),
    )

    if initialize:
        session_store.initialize()

    logger.info(
        "app_components_created",
        environment=settings.app.app_environment,
        base_url=settings.gateway.base_url,
        credential_backend=type(storage).__name__,
        auth_state=session_store.auth_state.value,
    )
    return components
