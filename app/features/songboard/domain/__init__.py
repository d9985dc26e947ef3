"""
Domain subpackage for the song board feature.
"""

from .errors import (
    AuthRequiredError,
    ConflictError,
    NotFoundError,
    SongboardError,
    StorageError,
    SuggestionLimitError,
    ValidationError,
    VideoSearchError,
)
from .models import (
    ChangeEvent,
    NewSong,
    RankedSong,
    Song,
    SongInput,
    SuggestionAllowance,
    User,
    VideoCandidate,
    VideoRef,
    Vote,
    VoteInsert,
    VoteOutcome,
    VoteResult,
)

__all__ = [
    "AuthRequiredError",
    "ChangeEvent",
    "ConflictError",
    "NewSong",
    "NotFoundError",
    "RankedSong",
    "Song",
    "SongInput",
    "SongboardError",
    "StorageError",
    "SuggestionAllowance",
    "SuggestionLimitError",
    "User",
    "ValidationError",
    "VideoCandidate",
    "VideoRef",
    "VideoSearchError",
    "Vote",
    "VoteInsert",
    "VoteOutcome",
    "VoteResult",
]
