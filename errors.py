"""
errors.py - Failure kinds surfaced by the board's repositories and workflows.

Every error carries the HTTP status the web layer answers with and whether the
client may retry the same request unchanged.
"""


class BoardError(Exception):
    status_code = 500
    retryable = False

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class ValidationError(BoardError):
    """A required field is missing or empty."""
    status_code = 400


class NotFound(BoardError):
    status_code = 404


class Unauthorized(BoardError):
    status_code = 401


class InvalidRequest(BoardError):
    """Unknown phase in the edit workflow."""
    status_code = 400


class StorageWriteError(BoardError):
    """Uploaded media could not be written to the upload folder."""
    status_code = 500
    retryable = True


class DependencyError(BoardError):
    """The database failed for a reason unrelated to the request's content."""
    status_code = 503
    retryable = True
