"""Exception taxonomy for bug-report composition and delivery."""


class BugDeskError(Exception):
    """Base class for expected bug-report failures."""


class ValidationError(BugDeskError):
    """
    A form field failed validation.

    Caller-correctable and raised before any write is attempted.
    """

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(reason)
        self.field = field
        self.reason = reason


class TransportError(BugDeskError):
    """The remote store write failed. Recovered by the pending queue."""


class PersistenceError(BugDeskError):
    """The local pending queue could not be read or written."""
