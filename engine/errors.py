"""Exception hierarchy for snapshot queries.

Whole-query failures (`InvalidParameter`, `UpstreamQueryError`) abort a request
and reach the caller. `MalformedMetadataItem` never leaves the join: the
offending item is logged and skipped.
"""


class SnapshotError(Exception):
    """Base class for every error raised by the snapshot engine."""


class InvalidParameter(SnapshotError):
    def __init__(self, parameter: str, value: object = None):
        self.parameter = parameter
        self.value = value
        super().__init__(f"BAD '{parameter}' parameter")


class UpstreamQueryError(SnapshotError):
    """The time-series store failed to answer a metadata or statistics query."""

    def __init__(self, phase: str, cause: Exception):
        self.phase = phase
        self.cause = cause
        super().__init__(f"archiver error ({phase}): {cause}")


class MalformedMetadataItem(SnapshotError):
    def __init__(self, reason: str, path: str = ""):
        self.reason = reason
        self.path = path
        super().__init__(f"{reason}: {path}" if path else reason)
