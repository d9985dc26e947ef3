"""
Request and response models for the song board HTTP API.

Services return domain dataclasses; these models are the wire shape.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.features.songboard.domain import (
    RankedSong,
    Song,
    SuggestionAllowance,
    User,
    VideoCandidate,
    VoteResult,
)
from app.features.songboard.domain.video import embed_url, thumbnail_url, video_url


class IdentifyRequest(BaseModel):
    """Name (+ optional phone) identification."""

    display_name: str = Field(..., max_length=100, description="Member's display name")
    phone_number: str | None = Field(None, max_length=32, description="Optional phone number")


class VideoSelection(BaseModel):
    video_id: str = Field(..., description="11-character YouTube video id or a YouTube URL containing one")
    title: str | None = Field(None, description="Video title as shown by YouTube")


class SongSubmitRequest(BaseModel):
    """Body for POST /songs. Blank title/artist are rejected by the service."""

    title: str | None = None
    artist: str | None = None
    notes: str | None = None
    video: VideoSelection | None = None


class UserResponse(BaseModel):
    id: str
    display_name: str

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(id=user.id, display_name=user.display_name)


class VideoResponse(BaseModel):
    video_id: str
    title: str | None
    url: str
    thumbnail_url: str
    embed_url: str


class SongResponse(BaseModel):
    id: str
    title: str
    artist: str
    notes: str | None
    video: VideoResponse | None
    suggested_by_id: str
    suggested_by_name: str
    created_at: datetime

    @classmethod
    def from_domain(cls, song: Song) -> "SongResponse":
        video = None
        if song.video is not None:
            video = VideoResponse(
                video_id=song.video.video_id,
                title=song.video.title,
                url=video_url(song.video.video_id),
                thumbnail_url=thumbnail_url(song.video.video_id),
                embed_url=embed_url(song.video.video_id),
            )
        return cls(
            id=song.id,
            title=song.title,
            artist=song.artist,
            notes=song.notes,
            video=video,
            suggested_by_id=song.suggested_by_id,
            suggested_by_name=song.suggested_by_name,
            created_at=song.created_at,
        )


class VoteResponse(BaseModel):
    outcome: str = Field(..., description="'recorded' or 'already_voted'; both are success")
    song_id: str
    user_id: str

    @classmethod
    def from_domain(cls, result: VoteResult) -> "VoteResponse":
        return cls(outcome=result.outcome.value, song_id=result.song_id, user_id=result.user_id)


class RankedSongResponse(BaseModel):
    rank: int
    song: SongResponse
    vote_count: int
    voter_ids: list[str]

    @classmethod
    def from_domain(cls, ranked: RankedSong) -> "RankedSongResponse":
        return cls(
            rank=ranked.rank,
            song=SongResponse.from_domain(ranked.song),
            vote_count=ranked.vote_count,
            voter_ids=sorted(ranked.voter_ids),
        )


class RankingsResponse(BaseModel):
    rankings: list[RankedSongResponse]

    @classmethod
    def from_domain(cls, ranking: list[RankedSong]) -> "RankingsResponse":
        return cls(rankings=[RankedSongResponse.from_domain(r) for r in ranking])


class SuggestionAllowanceResponse(BaseModel):
    can_suggest: bool
    used: int
    remaining: int
    limit: int
    next_allowed_at: datetime | None

    @classmethod
    def from_domain(cls, allowance: SuggestionAllowance) -> "SuggestionAllowanceResponse":
        return cls(
            can_suggest=allowance.can_suggest,
            used=allowance.used,
            remaining=allowance.remaining,
            limit=allowance.limit,
            next_allowed_at=allowance.next_allowed_at,
        )


class VideoCandidateResponse(BaseModel):
    id: str
    title: str
    channel_title: str | None
    thumbnail_url: str | None

    @classmethod
    def from_domain(cls, candidate: VideoCandidate) -> "VideoCandidateResponse":
        return cls(
            id=candidate.id,
            title=candidate.title,
            channel_title=candidate.channel_title,
            thumbnail_url=candidate.thumbnail_url,
        )


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Machine-readable error kind")
    detail: str
    field: str | None = None
    next_allowed_at: datetime | None = None
