"""
Help-desk errors.

Each failure that is shown to the user has its own class so the API layer
can map it to a distinct HTTP status and message.
"""


class HelpdeskError(Exception):
    """Base class for errors surfaced to the user."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class IndexOpenError(HelpdeskError):
    """Raised when the full-text index cannot be created or opened at startup."""


class IndexQueryError(HelpdeskError):
    """Raised when a full-text query fails during resolution."""


class IndexUpdateError(HelpdeskError):
    """Raised when an FAQ change cannot be written to the full-text index."""


class GenerationError(HelpdeskError):
    """Raised when the generation service is unreachable or returns an unusable reply."""


class FAQNotFoundError(HelpdeskError):
    """Raised when an FAQ entry id does not exist."""


class FavoriteNotFoundError(HelpdeskError):
    """Raised when no favorite matches the requested id or question/answer."""
