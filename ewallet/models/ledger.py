"""
Ledger Models

LedgerEntry mirrors one balance-affecting record returned by the
remote service. Entries are immutable once fetched and the list is
always replaced wholesale on refetch.

DisplayEntry is derived from an entry plus the current username.
It is never persisted and never cached across identity changes.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


class LedgerEntryType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER_SENT = "TRANSFER_SENT"
    TRANSFER_RECEIVED = "TRANSFER_RECEIVED"


class DisplayColor(str, Enum):
    """Color class of a displayed amount."""
    CREDIT = "credit"
    DEBIT = "debit"


class LedgerEntry(BaseModel):
    """One record from the remote ledger."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    type: LedgerEntryType
    amount: Decimal
    timestamp: datetime
    sender_username: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("senderUsername", "sender_username"),
    )
    receiver_username: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("receiverUsername", "receiver_username"),
    )
    balance_before: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("balanceBefore", "preBalance", "balance_before"),
    )
    balance_after: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("balanceAfter", "postBalance", "balance_after"),
    )

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """The service returns numeric ids; we treat them as opaque."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper().replace(" ", "_").replace("-", "_")
        return v

    @property
    def sort_key(self) -> float:
        """Numeric timestamp; naive datetimes are read as UTC."""
        ts = self.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return ts.timestamp()

    @property
    def entry_date(self) -> date:
        return self.timestamp.date()


class DisplayEntry(BaseModel):
    """A ledger entry as seen by one particular user."""
    model_config = ConfigDict(frozen=True)

    entry_id: str
    label: str
    signed_amount: Decimal
    color: DisplayColor
    counterparty_name: Optional[str] = None
    timestamp: datetime
    balance_before: Optional[Decimal] = None
    balance_after: Optional[Decimal] = None

    @property
    def is_credit(self) -> bool:
        return self.color == DisplayColor.CREDIT


class FetchResult(BaseModel):
    """
    Outcome of one fetch issued by the LedgerViewModel.

    applied is False when the response was discarded because a later
    request superseded it or the session stopped being authenticated.
    """

    generation: int = Field(ge=1)
    applied: bool
    entries: list[LedgerEntry] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BalanceResult(BaseModel):
    """Outcome of one balance fetch; same discard rules as FetchResult."""

    generation: int = Field(ge=1)
    applied: bool
    balance: Optional[Decimal] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
