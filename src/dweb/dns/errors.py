"""Errors raised by dweb name resolution.

Every error raised by the resolver derives from ResolutionError so callers
(and the persistent cache rescue path) can catch resolution failures without
catching unrelated exceptions.
"""


class ResolutionError(Exception):
    """Base class for all name resolution failures."""


class InvalidNameError(ResolutionError, ValueError):
    """The supplied name could not be parsed into something resolvable."""


class NotFoundError(ResolutionError):
    """No key could be found for the name."""

    def __init__(self, message: str = "DNS record not found") -> None:
        super().__init__(message)


class InvalidRecordError(ResolutionError):
    """A record was fetched but did not have the expected shape."""


class RecordLookupError(ResolutionError, LookupError):
    """The well-known lookup returned an unexpected HTTP status."""

    def __init__(self, status: int, message: str = "DNS record not found") -> None:
        super().__init__(message)
        self.status = status
