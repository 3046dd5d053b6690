"""HealthConsultant exception hierarchy."""


class HealthConsultantError(Exception):
    """Base exception for all HealthConsultant errors."""

    status_code = 500

    def __init__(self, message: str = "", code: str = "HC_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class UnauthorizedError(HealthConsultantError):
    """Raised when a call needs an authenticated identity and has none."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHORIZED")


class ForbiddenError(HealthConsultantError):
    """Raised when the identity lacks admin privilege."""

    status_code = 403

    def __init__(self, message: str = "Admin access required"):
        super().__init__(message, code="FORBIDDEN")


class UserNotFoundError(HealthConsultantError):
    """Raised when no account exists for an identity."""

    status_code = 404

    def __init__(self, message: str = "User not found"):
        super().__init__(message, code="USER_NOT_FOUND")


class PlanNotFoundError(HealthConsultantError):
    """Raised when neither the user's plan nor the fallback plan exists."""

    status_code = 500

    def __init__(self, message: str = "Plan unavailable, please try again later"):
        super().__init__(message, code="PLAN_NOT_FOUND")


class QuotaExceededError(HealthConsultantError):
    """Raised when the monthly interaction limit has been reached."""

    status_code = 429

    def __init__(
        self,
        message: str = "Monthly interaction limit reached",
        limit: int | None = None,
        remaining: int | None = 0,
    ):
        self.limit = limit
        self.remaining = remaining
        super().__init__(message, code="QUOTA_EXCEEDED")


class PersistenceError(HealthConsultantError):
    """Raised when the backing store is unreachable or rejects a write."""

    status_code = 500

    def __init__(self, message: str = "Storage unavailable, please try again later"):
        super().__init__(message, code="PERSISTENCE_ERROR")


class ValidationError(HealthConsultantError):
    """Raised on malformed input to a service call."""

    status_code = 400

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, code="INVALID_INPUT")
