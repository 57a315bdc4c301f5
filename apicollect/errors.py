"""Exception hierarchy for the collection pipeline.

Soft failures (missing objects, forbidden access, divergent kubelet configs)
never raise; they are reported as warning strings.  Everything here aborts
the run it is raised from.
"""

from __future__ import annotations


class CollectorError(Exception):
    """Base class for every error that aborts a collection run."""


class ContentError(CollectorError):
    """Benchmark or tailoring content could not be loaded."""


class ContentTimeoutError(ContentError):
    """The content file did not appear (or stayed empty) before the deadline."""

    def __init__(self, path: str, timeout: float) -> None:
        super().__init__(f"timed out after {timeout:g}s waiting for content file '{path}'")
        self.path = path
        self.timeout = timeout


class ContentParseError(ContentError):
    """The content file is not well-formed XML."""


class FetchError(CollectorError):
    """A cluster request failed in a way that cannot be recorded as a warning."""


class NoKindMatchError(CollectorError):
    """The API server does not serve the requested resource kind."""


class FilterError(CollectorError):
    """A jq filter could not be compiled or produced no result."""


class MoreThanOneResultError(FilterError):
    """A filter produced more than one value.

    Recoverable: ``first`` holds the encoded first value, which callers keep.
    """

    def __init__(self, expression: str, first: bytes) -> None:
        super().__init__(
            f"Skipping extra results from filter '{expression}': more than one object returned from the filter"
        )
        self.expression = expression
        self.first = first


class ReconcileError(CollectorError):
    """Kubelet configs could not be compared or intersected."""


class PersistError(CollectorError):
    """A result could not be mapped to, or written at, its destination."""
