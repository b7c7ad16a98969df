class JobBoardError(Exception):
    """Base class for errors raised by the service layer.

    ``status_code`` is the HTTP status a router should answer with and
    ``extra`` holds additional fields merged into the JSON error body.
    """

    status_code = 500

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra


class ValidationError(JobBoardError):
    status_code = 400


class NotFoundError(JobBoardError):
    status_code = 404


class ConflictError(JobBoardError):
    status_code = 409


class UpstreamError(JobBoardError):
    """An external webhook or API answered non-2xx or could not be reached."""

    def __init__(self, message: str, upstream_status: int | None = None, **extra):
        super().__init__(message, **extra)
        self.upstream_status = upstream_status


class PersistenceError(JobBoardError):
    """A write failed after the outbound side effect already happened."""

    status_code = 207
