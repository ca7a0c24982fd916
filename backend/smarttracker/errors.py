"""Error types raised by the activity store and its collaborators."""


class ActivityStoreError(Exception):
    """
    Base class for expected failures.

    Each error carries the HTTP status the transport layer responds with.
    """

    status_code: int = 500
    default_message: str = "Something went wrong!"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ActivityStoreError):
    """Missing or malformed required input."""

    status_code = 400
    default_message = "Invalid request"


class PayloadTooLargeError(ValidationError):
    """Uploaded file exceeds the configured size ceiling."""

    status_code = 413
    default_message = "File too large"


class NotFoundError(ActivityStoreError):
    """No activity exists with the requested id."""

    status_code = 404
    default_message = "Activity not found"


class StorageError(ActivityStoreError):
    """Writing or removing a file in the content directory failed."""

    status_code = 500
    default_message = "Storage operation failed"


class UnexpectedError(ActivityStoreError):
    status_code = 500
