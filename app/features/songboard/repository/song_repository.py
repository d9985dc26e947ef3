"""
Postgres-backed song catalog.

Rows are normalized into `Song` here, once, including the suggester's
display name from the users join.
"""

from datetime import datetime

from app.db.helpers import DatabaseError, fetch_all, fetch_one, with_db_retry
from app.features.songboard.domain import NewSong, Song, StorageError, VideoRef
from app.features.songboard.repository.contracts import Fingerprint
from app.features.songboard.repository.errors import translate_database_error
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class SongRepository:
    """Song Catalog Store over the `songs` table."""

    SONG_SELECT_COLUMNS = """
        s.id, s.title, s.artist, s.notes, s.youtube_video_id, s.youtube_title,
        s.suggested_by, s.created_at, u.name AS suggested_by_name
    """

    @staticmethod
    def _row_to_song(row: dict) -> Song:
        video = None
        if row.get("youtube_video_id"):
            video = VideoRef(video_id=row["youtube_video_id"], title=row.get("youtube_title"))

        return Song(
            id=str(row["id"]),
            title=row["title"],
            artist=row["artist"],
            notes=row.get("notes"),
            video=video,
            suggested_by_id=str(row["suggested_by"]),
            created_at=row["created_at"],
            suggested_by_name=row.get("suggested_by_name") or "Anonymous",
        )

    async def insert(self, song: NewSong) -> Song:
        # Not retried: no client-side dedupe key exists for suggestions
        query = f"""
            WITH s AS (
                INSERT INTO songs (
                    title, artist, notes, youtube_video_id, youtube_title, suggested_by
                )
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING *
            )
            SELECT {self.SONG_SELECT_COLUMNS}
            FROM s
            LEFT JOIN users u ON u.id = s.suggested_by
        """
        params = (
            song.title,
            song.artist,
            song.notes,
            song.video.video_id if song.video else None,
            song.video.title if song.video else None,
            song.suggested_by_id,
        )

        try:
            row = await fetch_one(query, params)
        except DatabaseError as e:
            raise translate_database_error(e, "insert_song") from e

        if not row:
            raise StorageError("Song insert returned no row", operation="insert_song")

        stored = self._row_to_song(row)
        logger.info("Song stored", song_id=stored.id, suggested_by=stored.suggested_by_id)
        return stored

    async def list_all(self) -> list[Song]:
        query = f"""
            SELECT {self.SONG_SELECT_COLUMNS}
            FROM songs s
            LEFT JOIN users u ON u.id = s.suggested_by
            ORDER BY s.created_at DESC, s.id
        """
        try:
            rows = await self._fetch_all(query)
        except DatabaseError as e:
            raise translate_database_error(e, "list_songs") from e
        return [self._row_to_song(row) for row in rows]

    async def list_by_user_since(self, user_id: str, since: datetime) -> list[Song]:
        query = f"""
            SELECT {self.SONG_SELECT_COLUMNS}
            FROM songs s
            LEFT JOIN users u ON u.id = s.suggested_by
            WHERE s.suggested_by = %s AND s.created_at >= %s
            ORDER BY s.created_at ASC, s.id
        """
        try:
            rows = await self._fetch_all(query, (user_id, since))
        except DatabaseError as e:
            raise translate_database_error(e, "list_songs_by_user") from e
        return [self._row_to_song(row) for row in rows]

    async def fingerprint(self) -> Fingerprint:
        try:
            row = await self._fetch_one("SELECT COUNT(*) AS n, MAX(created_at) AS newest FROM songs")
        except DatabaseError as e:
            raise translate_database_error(e, "songs_fingerprint") from e
        return (row["n"], row["newest"]) if row else (0, None)

    # Reads are safe to repeat on transient failures
    @staticmethod
    @with_db_retry(max_retries=2, base_delay=0.1)
    async def _fetch_one(query: str, params: tuple = ()) -> dict | None:
        return await fetch_one(query, params)

    @staticmethod
    @with_db_retry(max_retries=2, base_delay=0.1)
    async def _fetch_all(query: str, params: tuple = ()) -> list[dict]:
        return await fetch_all(query, params)
