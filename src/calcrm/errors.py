from abc import ABC


class UserError(ABC, Exception):
    """Base class for errors whose message is safe to show to the API client.

    Anything that is not a UserError is reported as a generic internal error,
    so these messages must never carry credentials or stack details.
    """


class NotFoundError(UserError):
    """Raised when a requested record does not exist."""

    def __init__(self, message: str = "Record not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when the bearer token is missing, invalid or expired."""

    def __init__(self, message: str = "No token provided, authorization denied") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when an authenticated user lacks the required role."""

    def __init__(self, message: str = "Admin access required") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class UnknownSequenceTypeError(ValidationError):
    """Raised when an admin sequence operation names an unknown record type."""

    def __init__(self, sequence_type: str) -> None:
        super().__init__(f"Invalid model type '{sequence_type}'. Use: project, report, gauge, or calibration")
