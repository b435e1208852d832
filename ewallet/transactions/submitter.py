"""
Transaction Submitter

Flow for one submit() call:
1. Validate locally (amount, counterparty)
2. Mint a fresh idempotency key for this attempt
3. Dispatch to the route for the transaction kind
4. Return what the service answered

No balance is mutated here and nothing is retried. The caller
refreshes the ledger view after a success.

Two submit() calls issued before either resolves both go out, each
under its own key. Front ends disable the control while `pending`
is non-zero.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional
from uuid import uuid4

from ewallet.errors import (
    NetworkError,
    SessionExpiredError,
    TransactionError,
    WalletError,
)
from ewallet.models.transaction import (
    TransactionKind,
    TransactionRequest,
    TransactionResult,
)
from ewallet.observability import get_logger
from ewallet.services.gateway import (
    FailureKind,
    GatewayError,
    RemoteGateway,
    extract_message,
)
from ewallet.services.gateway.routes import TRANSACTION_ROUTES
from ewallet.validation import TransactionValidator


FAILURE_MESSAGES: dict[TransactionKind, str] = {
    TransactionKind.DEPOSIT: "Deposit failed. Please try again.",
    TransactionKind.WITHDRAW: "Withdrawal failed. Please try again.",
    TransactionKind.TRANSFER: "Transfer failed. Please try again.",
}


def new_idempotency_key() -> str:
    return uuid4().hex


def _parse_balance(body: Any) -> Optional[Decimal]:
    if not isinstance(body, dict):
        return None
    value = body.get("balance", body.get("newBalance"))
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


class TransactionSubmitter:
    """Validates and dispatches deposit, withdraw and transfer requests."""

    def __init__(
        self,
        gateway: RemoteGateway,
        validator: Optional[TransactionValidator] = None,
        key_factory: Callable[[], str] = new_idempotency_key,
    ):
        self._gateway = gateway
        self._validator = validator or TransactionValidator()
        self._key_factory = key_factory
        self._pending = 0
        self._logger = get_logger(__name__)

    @property
    def pending(self) -> int:
        """Number of submissions currently awaiting the remote service."""
        return self._pending

    def build_request(
        self,
        kind: TransactionKind,
        amount: Any,
        counterparty_username: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> TransactionRequest:
        """
        Validate input and build the request for one attempt.

        Raises:
            ValidationError: Input rejected locally
        """
        normalized_amount, counterparty = self._validator.validate(
            kind, amount, counterparty_username
        )
        return TransactionRequest(
            kind=kind,
            amount=normalized_amount,
            counterparty_username=counterparty,
            idempotency_key=idempotency_key or self._key_factory(),
        )

    async def submit(
        self,
        kind: TransactionKind,
        amount: Any,
        counterparty_username: Optional[str] = None,
        *,
        idempotency_key: Optional[str] = None,
    ) -> TransactionResult:
        """
        Submit one transaction.

        Args:
            kind: Deposit, withdraw or transfer
            amount: User-entered amount (Decimal, number or string)
            counterparty_username: Receiver, required for transfers
            idempotency_key: Reuse a key from an earlier attempt of the
                same logical action; a fresh key is minted when omitted

        Returns:
            TransactionResult with whatever balance the service reported

        Raises:
            ValidationError: Rejected locally, nothing was sent
            TransactionError: The service rejected the transaction
            SessionExpiredError: The service answered 401
            NetworkError: No usable answer from the service
        """
        kind = TransactionKind(kind)
        request = self.build_request(kind, amount, counterparty_username, idempotency_key)
        route = TRANSACTION_ROUTES[kind]

        self._logger.info(
            "transaction_dispatched",
            kind=kind.value,
            amount=str(request.amount),
            idempotency_key=request.idempotency_key,
        )

        self._pending += 1
        try:
            body = await self._gateway.post_transaction(route, request.to_payload())
        except GatewayError as e:
            self._logger.info(
                "transaction_failed",
                kind=kind.value,
                idempotency_key=request.idempotency_key,
                failure=e.kind.value,
                status_code=e.status_code,
            )
            raise self._map_failure(kind, e) from e
        finally:
            self._pending -= 1

        result = TransactionResult(
            kind=kind,
            amount=request.amount,
            counterparty_username=request.counterparty_username,
            idempotency_key=request.idempotency_key,
            balance=_parse_balance(body),
            message=extract_message(body),
            payload=body if isinstance(body, dict) else {},
        )

        self._logger.info(
            "transaction_succeeded",
            kind=kind.value,
            idempotency_key=request.idempotency_key,
        )
        return result

    @staticmethod
    def _map_failure(kind: TransactionKind, error: GatewayError) -> WalletError:
        default = FAILURE_MESSAGES[kind]
        failure = error.failure

        if failure.kind == FailureKind.UNAUTHORIZED:
            return SessionExpiredError(
                failure.message if failure.structured else default,
                status_code=failure.status_code,
            )
        if failure.kind == FailureKind.REJECTED:
            return TransactionError(failure.message, status_code=failure.status_code)
        return NetworkError(default, status_code=failure.status_code)
