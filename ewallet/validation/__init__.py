from ewallet.validation.validator import (
    CredentialsValidator,
    TransactionValidator,
    get_user_friendly_summary,
)

__all__ = [
    "CredentialsValidator",
    "TransactionValidator",
    "get_user_friendly_summary",
]
