"""
Song Submission Coordinator.

Validates a suggestion, enforces the rolling suggestion allowance and writes
the song once. Nothing here is retried: a suggestion has no client-supplied
dedupe key, so a blind retry could store it twice.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from app.config import settings
from app.features.songboard.domain import (
    AuthRequiredError,
    NewSong,
    Song,
    SongInput,
    SuggestionAllowance,
    SuggestionLimitError,
    User,
    ValidationError,
    VideoRef,
)
from app.features.songboard.domain.video import extract_video_id
from app.features.songboard.repository import SongCatalog
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require_text(value: str | None, field: str) -> str:
    cleaned = _clean_optional(value)
    if cleaned is None:
        raise ValidationError(f"Song {field} is required", field=field)
    return cleaned


def validate_song_input(song_input: SongInput, acting_user: User) -> NewSong:
    """Trim and check a suggestion. Raises ValidationError, never writes."""
    title = _require_text(song_input.title, "title")
    artist = _require_text(song_input.artist, "artist")

    video = None
    if song_input.video is not None:
        # Accepts a bare id or a pasted watch / youtu.be / embed / shorts URL
        video_id = extract_video_id(song_input.video.video_id)
        if video_id is None:
            raise ValidationError("Invalid YouTube video id", field="video_id")
        video = VideoRef(
            video_id=video_id,
            title=_clean_optional(song_input.video.title),
        )

    return NewSong(
        title=title,
        artist=artist,
        notes=_clean_optional(song_input.notes),
        video=video,
        suggested_by_id=acting_user.id,
    )


class SongSubmissionService:
    def __init__(
        self,
        songs: SongCatalog,
        *,
        max_suggestions: int | None = None,
        window_days: int | None = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.songs = songs
        self.max_suggestions = (
            settings.MAX_SUGGESTIONS_PER_WINDOW if max_suggestions is None else max_suggestions
        )
        self.window = timedelta(
            days=settings.SUGGESTION_WINDOW_DAYS if window_days is None else window_days
        )
        self._now = now

    async def get_allowance(self, acting_user: User | None) -> SuggestionAllowance:
        """How many suggestions the member may still make in the current window."""
        if acting_user is None:
            raise AuthRequiredError("You must identify yourself to suggest songs")

        since = self._now() - self.window
        recent = await self.songs.list_by_user_since(acting_user.id, since)
        return SuggestionAllowance(
            used=len(recent),
            limit=self.max_suggestions,
            window=self.window,
            oldest_in_window=min((s.created_at for s in recent), default=None),
        )

    async def submit_song(self, song_input: SongInput, acting_user: User | None) -> Song:
        """
        Validate and persist a new suggestion.

        Args:
            song_input: Title, artist, optional notes and optional video selection
            acting_user: Resolved member identity

        Returns:
            The stored Song with its generated id and created_at

        Raises:
            AuthRequiredError: No member identity
            ValidationError: Blank title/artist or malformed video id
            SuggestionLimitError: Allowance for the window is used up
            StorageError: The store failed; not retried
        """
        if acting_user is None:
            raise AuthRequiredError("You must identify yourself to suggest songs")

        new_song = validate_song_input(song_input, acting_user)

        allowance = await self.get_allowance(acting_user)
        if not allowance.can_suggest:
            logger.info(
                "Suggestion limit reached",
                user_id=acting_user.id,
                used=allowance.used,
                next_allowed_at=allowance.next_allowed_at,
            )
            raise SuggestionLimitError(
                f"You've reached your limit of {allowance.limit} song suggestions "
                f"in a {self.window.days}-day period",
                next_allowed_at=allowance.next_allowed_at,
            )

        song = await self.songs.insert(new_song)
        logger.info(
            "Song suggested",
            song_id=song.id,
            user_id=acting_user.id,
            has_video=song.video is not None,
        )
        return song

    async def list_songs(self) -> list[Song]:
        """All songs, newest first."""
        return await self.songs.list_all()
