"""
Data Models Package

Pydantic models for the session, transaction requests and the ledger.
"""

from ewallet.models.ledger import (
    BalanceResult,
    DisplayColor,
    DisplayEntry,
    FetchResult,
    LedgerEntry,
    LedgerEntryType,
)
from ewallet.models.session import (
    LEGAL_TRANSITIONS,
    AuthState,
    Session,
    UserIdentity,
)
from ewallet.models.transaction import (
    TransactionKind,
    TransactionRequest,
    TransactionResult,
    ValidationIssue,
)

__all__ = [
    # Ledger models
    "BalanceResult",
    "DisplayColor",
    "DisplayEntry",
    "FetchResult",
    "LedgerEntry",
    "LedgerEntryType",
    # Session models
    "LEGAL_TRANSITIONS",
    "AuthState",
    "Session",
    "UserIdentity",
    # Transaction models
    "TransactionKind",
    "TransactionRequest",
    "TransactionResult",
    "ValidationIssue",
]
