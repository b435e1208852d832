"""
Transaction Models

A TransactionRequest is ephemeral: created for one submission
attempt and discarded once the remote service has answered.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TransactionKind(str, Enum):
    """Mutating operations the remote ledger accepts."""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TRANSFER = "transfer"


class ValidationIssue(BaseModel):
    """A single local validation issue."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_positive', 'too_precise')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


class TransactionRequest(BaseModel):
    """
    One submission attempt.

    Only built from already-validated input; the validators here
    restate the invariants so a malformed request cannot exist.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    kind: TransactionKind
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount with at most 2 decimal places"
    )
    counterparty_username: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Receiver of a transfer"
    )
    idempotency_key: str = Field(
        ...,
        min_length=1,
        description="Opaque token the ledger uses to deduplicate"
    )

    @model_validator(mode='after')
    def check_invariants(self) -> 'TransactionRequest':
        if self.amount.as_tuple().exponent < -2:
            raise ValueError("Amount cannot have more than 2 decimal places")
        if self.kind == TransactionKind.TRANSFER and not self.counterparty_username:
            raise ValueError("Transfer requires a counterparty username")
        return self

    def to_payload(self) -> dict[str, Any]:
        """Request body for the remote route."""
        payload: dict[str, Any] = {
            "amount": str(self.amount),
            "idempotencyKey": self.idempotency_key,
        }
        if self.kind == TransactionKind.TRANSFER:
            payload["receiverUsername"] = self.counterparty_username
        return payload


class TransactionResult(BaseModel):
    """
    What the remote service returned for a successful submission.

    The balance is informational; views only change what they
    display after a refetch.
    """

    kind: TransactionKind
    amount: Decimal
    counterparty_username: Optional[str] = None
    idempotency_key: str
    balance: Optional[Decimal] = None
    message: Optional[str] = None
    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def summary(self) -> str:
        """Short confirmation line for the UI."""
        if self.kind == TransactionKind.TRANSFER:
            text = f"Successfully transferred {self.amount:.2f} to {self.counterparty_username}."
        elif self.kind == TransactionKind.DEPOSIT:
            text = f"Successfully deposited {self.amount:.2f}."
        else:
            text = f"Successfully withdrew {self.amount:.2f}."
        if self.balance is not None:
            text += f" New balance: {self.balance:.2f}"
        return text
