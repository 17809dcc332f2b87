"""Error taxonomy for the dashboard.

Only a failed store probe at build start is fatal. Everything else is
recovered at the level noted on each class.
"""


class DashboardError(Exception):
    """Base class for all dashboard errors."""


class NotFoundError(DashboardError):
    """A store lookup returned nothing. Recovered locally as an empty result."""

    def __init__(self, path: str):
        super().__init__(f"Document not found: {path}")
        self.path = path


class MalformedEntryError(DashboardError):
    """A stored entry matches no known shape. The entry is dropped."""

    def __init__(self, key, reason: str):
        super().__init__(f"Malformed entry {key!r}: {reason}")
        self.key = key
        self.reason = reason


class TransportError(DashboardError):
    """The document store could not be reached (network, auth, server error)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(DashboardError):
    """Invalid platform view or time window. Shown to users as a "no data" state."""


class PageBuildError(DashboardError):
    """A single static page failed to build. Counted, never propagated."""
