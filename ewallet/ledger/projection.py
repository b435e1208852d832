"""
Ledger Projection

Pure functions that turn raw ledger entries into what one particular
user sees: direction, sign, color and counterparty.

Transfer entries are labelled by the type the service sent, but the
current user's position wins: a TRANSFER_SENT entry whose sender is not
the current user is shown as received, and vice versa. With no known
current user the service's type is shown as is.
"""

from datetime import date, datetime
from typing import Any, Iterable, Optional, Union

from ewallet.models.ledger import (
    DisplayColor,
    DisplayEntry,
    LedgerEntry,
    LedgerEntryType,
)
from ewallet.services.gateway.routes import RANGE_DATE_FORMAT


LABEL_DEPOSIT = "DEPOSIT"
LABEL_WITHDRAWAL = "WITHDRAWAL"
LABEL_TRANSFER_SENT = "TRANSFER SENT"
LABEL_TRANSFER_RECEIVED = "TRANSFER RECEIVED"

DateBound = Union[date, datetime, str, None]


def _display(
    entry: LedgerEntry,
    label: str,
    credit: bool,
    counterparty: Optional[str],
) -> DisplayEntry:
    magnitude = abs(entry.amount)
    return DisplayEntry(
        entry_id=entry.id,
        label=label,
        signed_amount=magnitude if credit else -magnitude,
        color=DisplayColor.CREDIT if credit else DisplayColor.DEBIT,
        counterparty_name=counterparty,
        timestamp=entry.timestamp,
        balance_before=entry.balance_before,
        balance_after=entry.balance_after,
    )


def _sent(entry: LedgerEntry) -> DisplayEntry:
    return _display(entry, LABEL_TRANSFER_SENT, False, entry.receiver_username)


def _received(entry: LedgerEntry) -> DisplayEntry:
    return _display(entry, LABEL_TRANSFER_RECEIVED, True, entry.sender_username)


def project_for_user(entry: LedgerEntry, current_username: Optional[str]) -> DisplayEntry:
    """Derive the display fields of an entry for the current user."""
    if entry.type == LedgerEntryType.DEPOSIT:
        return _display(entry, LABEL_DEPOSIT, True, None)

    if entry.type == LedgerEntryType.WITHDRAWAL:
        return _display(entry, LABEL_WITHDRAWAL, False, None)

    if entry.type == LedgerEntryType.TRANSFER_SENT:
        if current_username is None or entry.sender_username == current_username:
            return _sent(entry)
        return _received(entry)

    # TRANSFER_RECEIVED
    if current_username is None or entry.receiver_username == current_username:
        return _received(entry)
    return _sent(entry)


def sort_descending_by_timestamp(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    """Newest first. Stable: equal timestamps keep their relative order."""
    return sorted(entries, key=lambda e: e.sort_key, reverse=True)


def parse_date_bound(value: DateBound) -> Optional[date]:
    """Accept a date, a datetime or a YYYY-MM-DD string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        return datetime.strptime(text, RANGE_DATE_FORMAT).date()
    raise TypeError(f"Unsupported date bound: {value!r}")


def filter_by_date_range(
    entries: Iterable[LedgerEntry],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[LedgerEntry]:
    """Keep entries whose date lies in [start, end]; a missing bound is open."""
    kept = []
    for entry in entries:
        day = entry.entry_date
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        kept.append(entry)
    return kept


def parse_entries(body: Any) -> list[LedgerEntry]:
    """
    Validate a transactions response.

    Raises:
        TypeError: The body is not a list
        pydantic.ValidationError: An entry is malformed
    """
    if body is None:
        return []
    if not isinstance(body, list):
        raise TypeError(f"Expected a list of ledger entries, got {type(body).__name__}")
    return [LedgerEntry.model_validate(item) for item in body]
