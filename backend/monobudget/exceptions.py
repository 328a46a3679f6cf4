"""
Exceptions raised by the budgeting, banking and chat collaborators.
"""
from typing import Optional


class MonobudgetError(Exception):
    """Base class for all errors raised by this package."""


class BudgetBackendError(MonobudgetError):
    """
    Raised when the budgeting backend rejects a request.

    Carries the HTTP status and the backend's own error id/detail so the
    user-facing notification can say what went wrong.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_id: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        self.status_code = status_code
        self.error_id = error_id
        self.detail = detail

        details = []
        if status_code is not None:
            details.append(f"status={status_code}")
        if error_id:
            details.append(f"id={error_id}")
        if detail:
            details.append(detail)

        full_message = f"{message} ({', '.join(details)})" if details else message
        super().__init__(full_message)


class BudgetRateLimitError(BudgetBackendError):
    """Raised when the budgeting backend asks the client to slow down."""

    def __init__(self, retry_after: float, detail: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(
            "Budget backend rate limit exceeded",
            status_code=429,
            error_id="429",
            detail=detail,
        )


class DuplicateTransactionError(BudgetBackendError):
    """Raised when a transaction with the same import id already exists."""


class MonoApiError(MonobudgetError):
    """Raised when the Monobank API answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message if status_code is None else f"{message} (status={status_code})")


class TelegramApiError(MonobudgetError):
    """Raised when the Telegram Bot API answers with ok=false."""

    def __init__(self, method: str, description: str, error_code: Optional[int] = None):
        self.method = method
        self.description = description
        self.error_code = error_code
        super().__init__(f"Telegram {method} failed: {description}")


class CallbackDecodeError(ValueError):
    """Raised when a button payload cannot be turned into an update request."""


class MessageParseError(ValueError):
    """Raised when a rendered statement message does not have the expected layout."""


class StartupVerificationError(MonobudgetError):
    """Raised when configuration does not match what the backends report."""
