# backend/chronicle/errors.py
"""Error taxonomy shared by the stores, the archive codec and the API."""


class ChronicleError(Exception):
    """Base class for every error the archive store reports to callers."""


class ValidationError(ChronicleError):
    """Caller input is invalid and can be corrected by the caller."""


class NotFoundError(ChronicleError):
    """A project, photo or blob does not exist."""

    def __init__(self, kind: str, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class CorruptArchiveError(ChronicleError):
    """An archive could not be decoded; nothing was imported."""


class UnsupportedArchiveVersionError(CorruptArchiveError):
    """The archive was written by a newer (or unknown) format version."""

    def __init__(self, version, supported: int):
        self.version = version
        self.supported = supported
        super().__init__(
            f"Unsupported archive version {version!r}; this reader supports versions up to {supported}"
        )


class IntegrityError(ChronicleError):
    """A candidate state has dangling references and cannot be restored."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        preview = "; ".join(problems[:5])
        more = f" (and {len(problems) - 5} more)" if len(problems) > 5 else ""
        super().__init__(f"Archive failed integrity check: {preview}{more}")


class StoreBusyError(ChronicleError):
    """A restore holds the store exclusively; retry after ``retry_after`` seconds."""

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f"Store is busy restoring an archive; retry in {retry_after}s")


class StorageIOError(ChronicleError, OSError):
    """Durable storage failed while an operation was in flight."""
