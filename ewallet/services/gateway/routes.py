"""Routes consumed from the remote ledger service."""

from typing import Final

from ewallet.models.transaction import TransactionKind


AUTH_REGISTER: Final = "/auth/register"
AUTH_LOGIN: Final = "/auth/login"

WALLET_BALANCE: Final = "/wallet/balance"
WALLET_DEPOSIT: Final = "/wallet/deposit"
WALLET_WITHDRAW: Final = "/wallet/withdraw"
WALLET_TRANSFER: Final = "/wallet/transfer"
WALLET_TRANSACTIONS: Final = "/wallet/transactions"
WALLET_TRANSACTIONS_RANGE: Final = "/wallet/transactions/range"

TRANSACTION_ROUTES: Final[dict[TransactionKind, str]] = {
    TransactionKind.DEPOSIT: WALLET_DEPOSIT,
    TransactionKind.WITHDRAW: WALLET_WITHDRAW,
    TransactionKind.TRANSFER: WALLET_TRANSFER,
}

# Query-parameter date format for the range route
RANGE_DATE_FORMAT: Final = "%Y-%m-%d"
