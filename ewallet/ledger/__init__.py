"""Ledger reconciliation: per-user projection and the fetch view model."""

from ewallet.ledger.projection import (
    LABEL_DEPOSIT,
    LABEL_TRANSFER_RECEIVED,
    LABEL_TRANSFER_SENT,
    LABEL_WITHDRAWAL,
    filter_by_date_range,
    parse_date_bound,
    parse_entries,
    project_for_user,
    sort_descending_by_timestamp,
)
from ewallet.ledger.view_model import (
    DEFAULT_SUMMARY_WINDOW,
    FETCH_ALL_FAILED_MESSAGE,
    FETCH_BALANCE_FAILED_MESSAGE,
    FETCH_RANGE_FAILED_MESSAGE,
    LedgerViewModel,
)

__all__ = [
    "DEFAULT_SUMMARY_WINDOW",
    "FETCH_ALL_FAILED_MESSAGE",
    "FETCH_BALANCE_FAILED_MESSAGE",
    "FETCH_RANGE_FAILED_MESSAGE",
    "LABEL_DEPOSIT",
    "LABEL_TRANSFER_RECEIVED",
    "LABEL_TRANSFER_SENT",
    "LABEL_WITHDRAWAL",
    "LedgerViewModel",
    "filter_by_date_range",
    "parse_date_bound",
    "parse_entries",
    "project_for_user",
    "sort_descending_by_timestamp",
]
