"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Validation (local preconditions, never sent to the backend)
  2xxx: Connection (push transport / backend unreachable, retryable)
  3xxx: Remote rejection (authoritative business-rule denial)
  4xxx: Timeout (retryable)
  5xxx: Data integrity (handled locally by degrading to a safe state)
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        retryable: bool = False,
    ) -> None:
        self.code = code
        self.message = message
        self.retryable = retryable
        super().__init__(message)


# --- 1xxx: Validation ---

class ValidationError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, retryable=False)


class AmountNotPositiveError(ValidationError):
    def __init__(self, amount: object) -> None:
        super().__init__(1001, f"Maximum amount must be a finite positive number, got {amount!r}")


class AmountNotAboveCurrentBidError(ValidationError):
    def __init__(self, amount: int, current_bid: int) -> None:
        super().__init__(
            1002,
            f"Maximum amount {amount} must be greater than the current bid {current_bid}",
        )


class AmountBelowMinimumStepError(ValidationError):
    def __init__(self, amount: int, minimum: int) -> None:
        super().__init__(
            1003,
            f"Maximum amount {amount} is below the minimum next bid {minimum}",
        )


# --- 2xxx: Connection ---

class RealtimeConnectionError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2001, f"Realtime connection failed: {detail}", retryable=True)


class RemoteUnavailableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2002, f"Backend unreachable: {detail}", retryable=True)


# --- 3xxx: Remote rejection ---

class RemoteRejectionError(AppError):
    GENERIC_MESSAGE = "The request was rejected by the server"

    def __init__(self, status_code: int | None, reason: str | None = None) -> None:
        # status_code is None for hub invocation errors (no HTTP response)
        self.status_code = status_code
        self.reason = reason
        super().__init__(3001, reason or self.GENERIC_MESSAGE, retryable=False)


class NotFoundError(AppError):
    def __init__(self, resource: str) -> None:
        super().__init__(3002, f"Not found: {resource}", retryable=False)


# --- 4xxx: Timeout ---

class RemoteTimeoutError(AppError):
    def __init__(self, operation: str) -> None:
        super().__init__(4001, f"Timed out waiting for {operation}", retryable=True)


# --- 5xxx: Data integrity ---

class DataIntegrityWarning(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5001, f"Malformed data: {detail}", retryable=False)
