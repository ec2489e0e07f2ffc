"""Domain exceptions for the food-ordering service.

Each exception carries a stable machine-readable ``code`` and the HTTP status
the API layer answers with.
"""


class FoodOrderingError(Exception):
    """Base exception for all food-ordering errors."""

    code = "ERROR"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(FoodOrderingError):
    """Raised when input is malformed or missing."""

    code = "VALIDATION_ERROR"


class NotFound(FoodOrderingError):
    """Raised when an entity does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, ref=None):
        self.entity = entity
        self.ref = ref
        msg = f"{entity} not found"
        if ref is not None:
            msg = f"{entity} not found: {ref}"
        super().__init__(msg)


class Conflict(FoodOrderingError):
    """Raised when a unique field (e.g. email) is already taken."""

    code = "CONFLICT"


class InvalidTransaction(FoodOrderingError):
    """Raised when a transaction is missing, failed or already consumed."""

    code = "INVALID_TRANSACTION"

    def __init__(self, txn_id, reason: str | None = None):
        self.txn_id = txn_id
        msg = f"Invalid transaction: {txn_id}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class InvalidItems(FoodOrderingError):
    """Raised when requested food ids do not fully resolve to one vendor's menu."""

    code = "INVALID_ITEMS"

    def __init__(self, message: str, missing: list[int] | None = None):
        self.missing = missing or []
        super().__init__(message)


class InvalidTransition(FoodOrderingError):
    """Raised when an order status change is not in the transition table."""

    code = "INVALID_TRANSITION"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from {current} to {requested}")


class Unauthorized(FoodOrderingError):
    code = "UNAUTHORIZED"
    status_code = 401


class Forbidden(FoodOrderingError):
    code = "FORBIDDEN"
    status_code = 403


class UpstreamFailure(FoodOrderingError):
    """Raised when object storage or the notification channel fails."""

    code = "UPSTREAM_FAILURE"
    status_code = 502

    def __init__(self, service: str, detail: str):
        self.service = service
        self.detail = detail
        super().__init__(f"{service} failed: {detail}")
