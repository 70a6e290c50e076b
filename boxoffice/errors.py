"""Error taxonomy for the registration and payment flow."""


class BoxOfficeError(Exception):
    """Base error carrying a message that is safe to show to the caller."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BoxOfficeError):
    """Raised when a purchase request is missing fields or out of range."""

    status_code = 400


class SignatureError(BoxOfficeError):
    """Raised when a webhook cannot be verified."""

    status_code = 400


class AuthError(BoxOfficeError):
    """Raised when admin credentials are missing or wrong."""

    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class ProviderError(BoxOfficeError):
    """Raised when a Stripe API call fails."""


class PersistenceError(BoxOfficeError):
    """Raised when the store is unavailable or a query fails."""
