"""
Error Taxonomy

Every failure that reaches orchestration code is one of these,
already carrying a displayable message. Components only display
the message and re-enable the triggering control; nothing here
is retried.

    ValidationError      local, pre-dispatch (bad amount, missing counterparty)
    CredentialsError     login/registration rejected by the remote service
    SessionExpiredError  401 observed on any call; the session is invalidated
    TransactionError     remote business-rule rejection (insufficient funds, ...)
    NetworkError         transport failure, no structured message available
"""

from enum import Enum
from typing import Optional

from ewallet.models.transaction import ValidationIssue


class ErrorKind(str, Enum):
    """Tag carried by every WalletError."""
    VALIDATION = "validation"
    CREDENTIALS = "credentials"
    SESSION_EXPIRED = "session_expired"
    TRANSACTION = "transaction"
    NETWORK = "network"
    SESSION_STATE = "session_state"


class WalletError(Exception):
    """Base exception for the client layer."""

    kind: ErrorKind = ErrorKind.NETWORK

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


class ValidationError(WalletError):
    """Request rejected locally; never reached the network."""

    kind = ErrorKind.VALIDATION

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        message = "; ".join(issue.message for issue in issues) or "Invalid request"
        super().__init__(message)

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]


class CredentialsError(WalletError):
    kind = ErrorKind.CREDENTIALS


class SessionExpiredError(WalletError):
    kind = ErrorKind.SESSION_EXPIRED


class TransactionError(WalletError):
    kind = ErrorKind.TRANSACTION


class NetworkError(WalletError):
    kind = ErrorKind.NETWORK


class SessionStateError(WalletError):
    """An operation was invoked in a session state that does not allow it."""

    kind = ErrorKind.SESSION_STATE
