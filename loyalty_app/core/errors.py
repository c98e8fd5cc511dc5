# loyalty_app/core/errors.py
"""
Domain errors raised by the client core.

The HTTP layer keeps raising `HTTPException` directly (see routers); these
exceptions are for code that runs outside a request, i.e. the session store,
the synchronizer and the auth facade.
"""


class LoyaltyError(Exception):
    """Base class for all client-core errors."""


class GatewayError(LoyaltyError):
    """A Supabase call failed for a reason other than bad user input."""


class AuthFailedError(LoyaltyError):
    """
    Authentication was rejected by the gateway (bad credentials, expired OTP,
    weak password, ...).

    `message` is safe to show next to the form that triggered it.
    """

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class NotAuthenticatedError(LoyaltyError):
    """An operation needs an active session and there is none."""


class AccountDeletionError(LoyaltyError):
    """
    The delete-account function failed.

    A partial cascade cannot be retried safely, so the user is asked to
    contact support instead.
    """

    default_message = "Could not delete account. Please contact support."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
