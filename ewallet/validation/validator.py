"""
Local Validation

Everything here runs before a request is built. A request that fails
validation never reaches the network.

Transactions:
- amount must parse as a finite number
- amount must be greater than zero
- amount may have at most 2 decimal places
- transfers need a non-empty counterparty

Credential forms:
- login needs a username and a password
- registration bounds username and password length and checks
  the confirmation
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ewallet.errors import ValidationError
from ewallet.models.transaction import TransactionKind, ValidationIssue


MAX_DECIMAL_PLACES = 2

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 40


class TransactionValidator:
    """Validates the user-entered fields of a deposit, withdrawal or transfer."""

    def _parse_amount(self, raw: Any) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None, [ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
            )]

        # bool is an int subclass; True is not an amount
        if isinstance(raw, bool) or not isinstance(raw, (Decimal, int, float, str)):
            return None, [ValidationIssue(
                field="amount",
                issue_type="not_a_number",
                message="Amount must be a number",
            )]

        try:
            amount = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
        except InvalidOperation:
            return None, [ValidationIssue(
                field="amount",
                issue_type="not_a_number",
                message="Amount must be a number",
            )]

        if not amount.is_finite():
            return None, [ValidationIssue(
                field="amount",
                issue_type="not_finite",
                message="Amount must be a finite number",
            )]

        return amount, []

    def _validate_amount(self, raw: Any) -> tuple[Optional[Decimal], list[ValidationIssue]]:
        amount, issues = self._parse_amount(raw)
        if amount is None:
            return None, issues

        if amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="not_positive",
                message="Amount must be greater than zero",
            ))
        # Trailing zeros beyond the second place are harmless ("5.000")
        elif amount.normalize().as_tuple().exponent < -MAX_DECIMAL_PLACES:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="too_precise",
                message=f"Amount cannot have more than {MAX_DECIMAL_PLACES} decimal places",
            ))

        if issues:
            return None, issues

        try:
            return amount.quantize(Decimal("0.01")), issues
        except InvalidOperation:
            # More digits than the decimal context can hold
            return None, [ValidationIssue(
                field="amount",
                issue_type="too_large",
                message="Amount is too large",
            )]

    def _validate_counterparty(
        self,
        kind: TransactionKind,
        counterparty: Optional[str],
    ) -> tuple[Optional[str], list[ValidationIssue]]:
        if kind != TransactionKind.TRANSFER:
            return None, []

        name = counterparty.strip() if isinstance(counterparty, str) else ""
        if not name:
            return None, [ValidationIssue(
                field="counterparty_username",
                issue_type="missing",
                message="Recipient username is required",
            )]
        return name, []

    def validate(
        self,
        kind: TransactionKind,
        amount: Any,
        counterparty_username: Optional[str] = None,
    ) -> tuple[Decimal, Optional[str]]:
        """
        Validate and normalize one submission.

        Returns:
            (amount quantized to 2 places, stripped counterparty or None)

        Raises:
            ValidationError: With every issue found
        """
        normalized_amount, issues = self._validate_amount(amount)
        counterparty, counterparty_issues = self._validate_counterparty(
            kind, counterparty_username
        )
        issues.extend(counterparty_issues)

        if issues or normalized_amount is None:
            raise ValidationError(issues)

        return normalized_amount, counterparty


class CredentialsValidator:
    """Checks for the login and registration forms."""

    def validate_login(self, username: str, password: str) -> None:
        issues = []
        if not username or not username.strip():
            issues.append(ValidationIssue(
                field="username",
                issue_type="missing",
                message="Username is required",
            ))
        if not password:
            issues.append(ValidationIssue(
                field="password",
                issue_type="missing",
                message="Password is required",
            ))
        if issues:
            raise ValidationError(issues)

    def validate_registration(
        self,
        username: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> None:
        issues = []
        name = (username or "").strip()

        if not name:
            issues.append(ValidationIssue(
                field="username",
                issue_type="missing",
                message="Username is required",
            ))
        elif len(name) < USERNAME_MIN_LENGTH:
            issues.append(ValidationIssue(
                field="username",
                issue_type="too_short",
                message=f"Username must be at least {USERNAME_MIN_LENGTH} characters",
            ))
        elif len(name) > USERNAME_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="username",
                issue_type="too_long",
                message=f"Username must not exceed {USERNAME_MAX_LENGTH} characters",
            ))

        if not password:
            issues.append(ValidationIssue(
                field="password",
                issue_type="missing",
                message="Password is required",
            ))
        elif len(password) < PASSWORD_MIN_LENGTH:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_short",
                message=f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
            ))
        elif len(password) > PASSWORD_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_long",
                message=f"Password must not exceed {PASSWORD_MAX_LENGTH} characters",
            ))

        if confirm_password is not None and confirm_password != password:
            issues.append(ValidationIssue(
                field="confirm_password",
                issue_type="mismatch",
                message="Passwords must match",
            ))

        if issues:
            raise ValidationError(issues)


def get_user_friendly_summary(error: ValidationError) -> str:
    """One line per issue, for display under a form."""
    return "\n".join(f"• {issue.message}" for issue in error.issues)
