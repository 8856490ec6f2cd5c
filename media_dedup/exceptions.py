"""
Custom exception hierarchy for the media duplicate scanner.

Per-file and per-root failures are absorbed and counted by the scanner;
only ResourceExhaustedError is meant to end a run.
"""


class MediaDedupError(Exception):
    """Base exception for all media_dedup errors."""
    pass


class ResourceExhaustedError(MediaDedupError):
    """Raised when a directory listing fails because the process ran out of file descriptors."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"{path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


class ClassificationError(MediaDedupError):
    """Raised when a file cannot be read for type sniffing."""
    pass


class RootNotFoundError(MediaDedupError):
    """Raised when a scan root does not exist."""
    pass


class DatabaseError(MediaDedupError):
    """Raised when database operations fail."""
    pass


class ReportError(MediaDedupError):
    """Raised when a report file cannot be written."""
    pass
