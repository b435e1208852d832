"""
Ledger View Model

Holds the fetched ledger entries and balance for the signed-in user.

Every fetch is tagged with a generation number. A response is applied
only when no later request of the same family has been issued since
and the session is still Authenticated; anything else is discarded.
Leaving Authenticated wipes the held data and bumps both generations,
so fetches still in flight at logout can never land.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from ewallet.auth.session_store import SessionStore
from ewallet.ledger.projection import (
    DateBound,
    filter_by_date_range,
    parse_date_bound,
    parse_entries,
    project_for_user,
    sort_descending_by_timestamp,
)
from ewallet.models.ledger import BalanceResult, DisplayEntry, FetchResult, LedgerEntry
from ewallet.models.session import Session
from ewallet.observability import get_logger
from ewallet.services.gateway import FailureKind, GatewayError, RemoteGateway


FETCH_ALL_FAILED_MESSAGE = "Failed to fetch all ledger entries."
FETCH_RANGE_FAILED_MESSAGE = "Failed to fetch ledger entries by date range."
FETCH_BALANCE_FAILED_MESSAGE = "Failed to fetch balance."

DEFAULT_SUMMARY_WINDOW = 5


def _failure_message(error: GatewayError, default: str) -> str:
    if error.kind == FailureKind.REJECTED and error.failure.structured:
        return error.message
    return default


def _parse_balance(body: Any) -> Decimal:
    """
    Raises:
        ValueError: No numeric balance in the body
    """
    value = body.get("balance") if isinstance(body, dict) else body
    if value is None or isinstance(value, bool):
        raise ValueError(f"No balance in response: {body!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid balance: {value!r}") from e


class LedgerViewModel:
    """Entries, balance and their display projections for one session."""

    def __init__(
        self,
        gateway: RemoteGateway,
        session_store: SessionStore,
        summary_window: int = DEFAULT_SUMMARY_WINDOW,
    ):
        if summary_window < 1:
            raise ValueError("summary_window must be at least 1")

        self._gateway = gateway
        self._session_store = session_store
        self._summary_window = summary_window
        self._logger = get_logger(__name__)

        self._entries: list[LedgerEntry] = []
        # Written only by unfiltered fetches; the summary is built from it
        self._full_history: list[LedgerEntry] = []
        self._error: Optional[str] = None
        self._generation = 0
        self._settled_generation = 0

        self._balance: Optional[Decimal] = None
        self._balance_error: Optional[str] = None
        self._balance_generation = 0
        self._settled_balance_generation = 0

        self._unsubscribe = session_store.subscribe(self._on_session_change)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def entries(self) -> list[LedgerEntry]:
        return list(self._entries)

    @property
    def full_history(self) -> list[LedgerEntry]:
        """Entries from the latest applied unfiltered fetch."""
        return list(self._full_history)

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def balance(self) -> Optional[Decimal]:
        return self._balance

    @property
    def balance_error(self) -> Optional[str]:
        return self._balance_error

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def loading(self) -> bool:
        """True while the most recently issued entries fetch is outstanding."""
        return self._settled_generation < self._generation

    @property
    def summary_window(self) -> int:
        return self._summary_window

    def close(self) -> None:
        self._unsubscribe()

    def reset(self) -> None:
        """Drop held data and invalidate every in-flight fetch."""
        self._entries = []
        self._full_history = []
        self._error = None
        self._balance = None
        self._balance_error = None
        self._generation += 1
        self._settled_generation = self._generation
        self._balance_generation += 1
        self._settled_balance_generation = self._balance_generation

    def _on_session_change(self, previous: Session, current: Session) -> None:
        if not current.is_authenticated:
            if previous.is_authenticated:
                self._logger.info("ledger_reset", reason="session_ended")
                self.reset()
            return
        if previous.is_authenticated and previous.username != current.username:
            self._logger.info("ledger_reset", reason="identity_changed")
            self.reset()

    def _is_current(self, generation: int) -> bool:
        return (
            generation == self._generation
            and self._session_store.session.is_authenticated
        )

    def _is_current_balance(self, generation: int) -> bool:
        return (
            generation == self._balance_generation
            and self._session_store.session.is_authenticated
        )

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    async def fetch_all(self) -> FetchResult:
        """Fetch the complete entry list for the current user."""
        return await self._fetch(
            self._gateway.get_transactions,
            FETCH_ALL_FAILED_MESSAGE,
            operation="fetch_all",
        )

    async def fetch_range(
        self,
        start: DateBound = None,
        end: DateBound = None,
    ) -> FetchResult:
        """
        Fetch entries dated within [start, end].

        Either bound may be omitted. With neither bound this is fetch_all().
        Bounds accept a date or a YYYY-MM-DD string.
        """
        start_date = parse_date_bound(start)
        end_date = parse_date_bound(end)

        if start_date is None and end_date is None:
            return await self.fetch_all()

        async def load() -> Any:
            return await self._gateway.get_transactions_in_range(start_date, end_date)

        return await self._fetch(
            load,
            FETCH_RANGE_FAILED_MESSAGE,
            operation="fetch_range",
            filter_bounds=(start_date, end_date),
        )

    async def _fetch(
        self,
        loader: Callable[[], Awaitable[Any]],
        default_message: str,
        operation: str,
        filter_bounds: Optional[tuple] = None,
    ) -> FetchResult:
        self._generation += 1
        generation = self._generation
        log = self._logger.bind(operation=operation, generation=generation)

        entries: list[LedgerEntry] = []
        error: Optional[str] = None
        try:
            body = await loader()
            entries = parse_entries(body)
        except GatewayError as e:
            error = _failure_message(e, default_message)
        except (TypeError, PydanticValidationError) as e:
            log.warning("ledger_payload_invalid", error=str(e))
            error = default_message

        if error is None and filter_bounds is not None:
            entries = filter_by_date_range(entries, *filter_bounds)

        if not self._is_current(generation):
            log.info("ledger_fetch_discarded", latest=self._generation)
            return FetchResult(generation=generation, applied=False, entries=entries, error=error)

        self._settled_generation = generation
        if error is not None:
            # Previously displayed entries stay in place
            self._error = error
            log.info("ledger_fetch_failed", error=error)
        else:
            self._entries = entries
            if filter_bounds is None:
                self._full_history = entries
            self._error = None
            log.info("ledger_fetch_applied", count=len(entries))

        return FetchResult(generation=generation, applied=True, entries=entries, error=error)

    async def fetch_balance(self) -> BalanceResult:
        """Fetch the current balance; same discard rules as entry fetches."""
        self._balance_generation += 1
        generation = self._balance_generation
        log = self._logger.bind(operation="fetch_balance", generation=generation)

        balance: Optional[Decimal] = None
        error: Optional[str] = None
        try:
            balance = _parse_balance(await self._gateway.get_balance())
        except GatewayError as e:
            error = _failure_message(e, FETCH_BALANCE_FAILED_MESSAGE)
        except ValueError as e:
            log.warning("balance_payload_invalid", error=str(e))
            error = FETCH_BALANCE_FAILED_MESSAGE

        if not self._is_current_balance(generation):
            log.info("balance_fetch_discarded", latest=self._balance_generation)
            return BalanceResult(generation=generation, applied=False, balance=balance, error=error)

        self._settled_balance_generation = generation
        if error is not None:
            self._balance_error = error
        else:
            self._balance = balance
            self._balance_error = None
            log.info("balance_fetch_applied")

        return BalanceResult(generation=generation, applied=True, balance=balance, error=error)

    async def refresh(self) -> tuple[BalanceResult, FetchResult]:
        """Refetch balance and full history, typically after a transaction."""
        balance = await self.fetch_balance()
        entries = await self.fetch_all()
        return balance, entries

    # -------------------------------------------------------------------------
    # Projections
    # -------------------------------------------------------------------------

    def _project(self, entries: list[LedgerEntry]) -> list[DisplayEntry]:
        username = self._session_store.session.username
        if username is None and entries:
            # Opaque credential: transfer direction cannot be checked against the user
            self._logger.warning("ledger_projection_without_username", count=len(entries))
        return [project_for_user(entry, username) for entry in entries]

    def history(self) -> list[DisplayEntry]:
        """All held entries, newest first, projected for the current user."""
        return self._project(sort_descending_by_timestamp(self._entries))

    def summary(self) -> list[DisplayEntry]:
        """
        The newest `summary_window` entries of the full history, projected
        for the current user. A date-range fetch does not narrow it.
        """
        ordered = sort_descending_by_timestamp(self._full_history)
        return self._project(ordered[: self._summary_window])
