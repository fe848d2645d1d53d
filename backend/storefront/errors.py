"""
Failures surfaced to callers. Each carries the HTTP status the API answers
with; services raise them and never catch them on the way out.
"""


class StorefrontError(Exception):
    status_code = 400
    default_detail = "Request failed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(StorefrontError):
    status_code = 401
    default_detail = "You must be signed in to do that!"


class InvalidToken(StorefrontError):
    status_code = 401
    default_detail = "Invalid session token"


class InvalidCredentials(StorefrontError):
    status_code = 401
    default_detail = "Invalid email or password"


class Forbidden(StorefrontError):
    status_code = 403
    default_detail = "You don't have permission to do that!"


class NotFound(StorefrontError):
    status_code = 404
    default_detail = "Not found"


class NoSuchUser(NotFound):
    default_detail = "No such user found"


class InvalidOrExpiredToken(StorefrontError):
    status_code = 400
    default_detail = "This token is either invalid or expired!"


class PasswordMismatch(StorefrontError):
    status_code = 400
    default_detail = "Passwords don't match!"


class PasswordTooLong(StorefrontError):
    status_code = 400
    default_detail = "Password is too long"


class EmptyCart(StorefrontError):
    status_code = 400
    default_detail = "Your cart is empty"


class EmailTaken(StorefrontError):
    status_code = 409
    default_detail = "An account with that email already exists"


class CheckoutInProgress(StorefrontError):
    status_code = 409
    default_detail = "Duplicate request in progress, try again later"


class PaymentDeclined(StorefrontError):
    """Non-retryable rejection by the payment processor."""

    status_code = 402
    default_detail = "Payment declined"


class PaymentTransientError(StorefrontError):
    """Temporary processor or network failure; retrying is appropriate."""

    status_code = 502
    default_detail = "Payment processor unavailable"


class PaymentError(StorefrontError):
    status_code = 502
    default_detail = "Payment failed"
