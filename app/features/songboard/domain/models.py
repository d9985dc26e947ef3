"""
Domain models for the song board.

Plain dataclasses shared by repositories, services and the API layer.
Stored records are produced once at the storage boundary and never
mutated afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


@dataclass(frozen=True, slots=True)
class User:
    """A resolved member identity. Owned by the identity provider."""

    id: str
    display_name: str
    phone_number: str | None = None


@dataclass(frozen=True, slots=True)
class VideoRef:
    """The selected external video attached to a suggestion."""

    video_id: str
    title: str | None = None


@dataclass(frozen=True, slots=True)
class SongInput:
    """Raw suggestion input as received from the caller."""

    title: str | None
    artist: str | None
    notes: str | None = None
    video: VideoRef | None = None


@dataclass(frozen=True, slots=True)
class NewSong:
    """A validated suggestion ready to be written."""

    title: str
    artist: str
    notes: str | None
    video: VideoRef | None
    suggested_by_id: str


@dataclass(frozen=True, slots=True)
class Song:
    """A stored song suggestion."""

    id: str
    title: str
    artist: str
    notes: str | None
    video: VideoRef | None
    suggested_by_id: str
    created_at: datetime
    suggested_by_name: str = "Anonymous"


@dataclass(frozen=True, slots=True)
class Vote:
    """One member's vote for one song."""

    song_id: str
    user_id: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class VoteInsert:
    """Result of the ledger's atomic insert: False means the pair already existed."""

    inserted: bool


class VoteOutcome(str, Enum):
    RECORDED = "recorded"
    ALREADY_VOTED = "already_voted"


@dataclass(frozen=True, slots=True)
class VoteResult:
    song_id: str
    user_id: str
    outcome: VoteOutcome

    @property
    def success(self) -> bool:
        # Both outcomes mean "my vote is on the ledger"
        return self.outcome in (VoteOutcome.RECORDED, VoteOutcome.ALREADY_VOTED)


@dataclass(frozen=True, slots=True)
class RankedSong:
    """A song with its tally, derived on demand and never stored."""

    rank: int
    song: Song
    vote_count: int
    voter_ids: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class SuggestionAllowance:
    """How many suggestions a member has left in the rolling window."""

    used: int
    limit: int
    window: timedelta
    oldest_in_window: datetime | None = None

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    @property
    def can_suggest(self) -> bool:
        return self.used < self.limit

    @property
    def next_allowed_at(self) -> datetime | None:
        if self.can_suggest or self.oldest_in_window is None:
            return None
        return self.oldest_in_window + self.window


@dataclass(frozen=True, slots=True)
class VideoCandidate:
    """A search hit from the video platform."""

    id: str
    title: str
    channel_title: str | None
    thumbnail_url: str | None


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A mutation notice for one of the song board tables."""

    table: str  # "songs" or "votes"
    event: str  # "insert", "update" or "delete"
