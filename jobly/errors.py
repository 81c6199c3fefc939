"""
Error family raised by the jobly data-access layer.

Only two kinds originate here:
- ValidationError: bad or missing caller input, detected before any query.
- NotFoundError: the targeted row does not exist after the query ran.

Store failures (constraint violations, lost connections) are not wrapped
and propagate as whatever the store raised.
"""


class JoblyError(Exception):
    """Base class. Outer layers match on `kind` or on the concrete subclass."""

    kind = "error"
    status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, "status": self.status}


class ValidationError(JoblyError):
    """Caller input has the wrong shape."""

    kind = "validation"
    status = 400


class NotFoundError(JoblyError):
    """No row matched the requested key."""

    kind = "not_found"
    status = 404
