"""Error taxonomy shared by the store, the formatter and the API."""


class ProgressError(Exception):
    """Base class for request-fatal progress errors.

    Each subclass carries a stable ``code`` that the API exposes so callers
    can branch on the cause.
    """

    code: str = "progress_error"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UserNotFound(ProgressError):
    code = "user_not_found"
    status_code = 404

    def __init__(self, email: str) -> None:
        super().__init__(f"No progress document for {email!r}")
        self.email = email


class InvalidPlatform(ProgressError):
    code = "invalid_platform"
    status_code = 400

    def __init__(self, name: str, accepted: list[str]) -> None:
        super().__init__(
            f"Unknown platform {name!r}; expected one of {', '.join(accepted)}"
        )
        self.name = name


class InvalidInput(ProgressError):
    code = "invalid_input"
    status_code = 422


class StoreUnavailable(ProgressError):
    code = "store_unavailable"
    status_code = 503


class MalformedRecord(ProgressError):
    """Persisted data does not match the expected record shape."""

    code = "malformed_record"
    status_code = 500
