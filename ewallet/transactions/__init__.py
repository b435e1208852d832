from ewallet.transactions.submitter import (
    FAILURE_MESSAGES,
    TransactionSubmitter,
    new_idempotency_key,
)

__all__ = [
    "FAILURE_MESSAGES",
    "TransactionSubmitter",
    "new_idempotency_key",
]
