"""
Postgres-backed vote ledger.

Uniqueness of (song_id, user_id) is owned by the `votes_song_id_user_id_key`
constraint; `insert_if_absent` leans on ON CONFLICT DO NOTHING so that a
duplicate is a normal result rather than an error to pattern-match.
"""

from app.db.helpers import DatabaseError, fetch_all, fetch_one, with_db_retry
from app.features.songboard.domain import Vote, VoteInsert
from app.features.songboard.repository.contracts import Fingerprint
from app.features.songboard.repository.errors import translate_database_error
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class VoteRepository:
    """Vote Ledger over the `votes` table."""

    async def insert_if_absent(self, song_id: str, user_id: str) -> VoteInsert:
        query = """
            INSERT INTO votes (song_id, user_id)
            VALUES (%s, %s)
            ON CONFLICT (song_id, user_id) DO NOTHING
            RETURNING song_id
        """
        try:
            row = await fetch_one(query, (song_id, user_id))
        except DatabaseError as e:
            raise translate_database_error(e, "insert_vote") from e

        inserted = row is not None
        logger.debug("Vote insert attempted", song_id=song_id, user_id=user_id, inserted=inserted)
        return VoteInsert(inserted=inserted)

    async def list_for_song(self, song_id: str) -> list[Vote]:
        query = """
            SELECT song_id, user_id, created_at
            FROM votes
            WHERE song_id = %s
            ORDER BY created_at ASC
        """
        rows = await self._read(query, (song_id,), "list_votes_for_song")
        return [self._row_to_vote(row) for row in rows]

    async def list_all(self) -> list[Vote]:
        query = "SELECT song_id, user_id, created_at FROM votes ORDER BY created_at ASC"
        rows = await self._read(query, (), "list_votes")
        return [self._row_to_vote(row) for row in rows]

    async def list_song_ids_for_user(self, user_id: str) -> set[str]:
        rows = await self._read(
            "SELECT song_id FROM votes WHERE user_id = %s", (user_id,), "list_votes_for_user"
        )
        return {str(row["song_id"]) for row in rows}

    async def fingerprint(self) -> Fingerprint:
        rows = await self._read(
            "SELECT COUNT(*) AS n, MAX(created_at) AS newest FROM votes", (), "votes_fingerprint"
        )
        return (rows[0]["n"], rows[0]["newest"]) if rows else (0, None)

    @staticmethod
    def _row_to_vote(row: dict) -> Vote:
        return Vote(
            song_id=str(row["song_id"]),
            user_id=str(row["user_id"]),
            created_at=row["created_at"],
        )

    async def _read(self, query: str, params: tuple, operation: str) -> list[dict]:
        try:
            return await _fetch_all_with_retry(query, params)
        except DatabaseError as e:
            raise translate_database_error(e, operation) from e


@with_db_retry(max_retries=2, base_delay=0.1)
async def _fetch_all_with_retry(query: str, params: tuple) -> list[dict]:
    return await fetch_all(query, params)
