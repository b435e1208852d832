"""Authentication session and route gating."""

from ewallet.auth.access_gate import (
    ENTRY_VIEW,
    HOME_VIEW,
    PROTECTED_VIEWS,
    PUBLIC_VIEWS,
    AccessGate,
    GateDecision,
    GateOutcome,
    Navigator,
    View,
    resolve_path,
)
from ewallet.auth.session_store import (
    SessionListener,
    SessionStore,
    extract_token,
    username_from_token,
)

__all__ = [
    "ENTRY_VIEW",
    "HOME_VIEW",
    "PROTECTED_VIEWS",
    "PUBLIC_VIEWS",
    "AccessGate",
    "GateDecision",
    "GateOutcome",
    "Navigator",
    "SessionListener",
    "SessionStore",
    "View",
    "extract_token",
    "resolve_path",
    "username_from_token",
]
