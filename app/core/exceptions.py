"""Error taxonomy for the account and password-reset services.

Services raise these; the HTTP layer maps each one to a status code and a
caller-visible message.
"""


class AuthServiceError(Exception):
    """Base class for errors raised by the auth services."""

    default_message = "Request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(AuthServiceError):
    """Raised when the password hasher is given an empty plaintext."""

    default_message = "Password must not be empty."


class ValidationError(AuthServiceError):
    """Missing or malformed input; the caller can correct and retry."""

    default_message = "Missing or invalid required fields."


class DuplicateEmailError(AuthServiceError):
    """An account with the normalized email already exists."""

    default_message = "An account with this email already exists."


class AuthenticationError(AuthServiceError):
    """Generic invalid-credentials error. The message never says which check failed."""

    default_message = "Invalid email or password."


class InvalidOrExpiredTokenError(AuthServiceError):
    """The presented reset token is unknown, already used, or past its expiry."""

    default_message = "Invalid or expired password reset link."


class WeakPasswordError(AuthServiceError):
    """The new password is shorter than the minimum length."""

    default_message = "Password must be at least 6 characters long."


class DispatchError(AuthServiceError):
    """The reset link could not be delivered."""

    default_message = "Password reset email could not be sent."


class StorageError(AuthServiceError):
    """Unexpected persistence failure."""

    default_message = "Storage operation failed."
