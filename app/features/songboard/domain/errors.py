"""
Error taxonomy for the song board.

Every failure that leaves a service carries a stable `kind` label that the
API layer maps to a status code. A repeated vote is not an error and has
no class here; see VoteOutcome.ALREADY_VOTED.
"""

from datetime import datetime


class SongboardError(Exception):
    """Base class for song board failures."""

    kind = "songboard_error"

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(SongboardError):
    """Bad input shape: blank required field, malformed id."""

    kind = "validation_error"


class AuthRequiredError(SongboardError):
    """No resolved member identity was supplied."""

    kind = "auth_required"


class ConflictError(SongboardError):
    """A display name or phone number is already bound to another member."""

    kind = "conflict"


class NotFoundError(SongboardError):
    """A referenced record does not exist."""

    kind = "not_found"


class StorageError(SongboardError):
    """The backing store failed; `retryable` marks transient faults."""

    kind = "storage_error"

    def __init__(self, message: str, *, retryable: bool = False, operation: str | None = None):
        super().__init__(message)
        self.retryable = retryable
        self.operation = operation


class SuggestionLimitError(SongboardError):
    """The member has used up their suggestions for the current window."""

    kind = "suggestion_limit"

    def __init__(self, message: str, *, next_allowed_at: datetime | None = None):
        super().__init__(message)
        self.next_allowed_at = next_allowed_at


class VideoSearchError(SongboardError):
    """The video platform lookup failed or is not configured."""

    kind = "video_search_error"

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
