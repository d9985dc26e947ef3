"""
Storage contracts the song board services depend on.

Services receive implementations explicitly; the Postgres repositories in
this package are the production backing, tests pass in-memory doubles.
"""

from datetime import datetime
from typing import Protocol

from app.features.songboard.domain import NewSong, Song, User, Vote, VoteInsert

# (row count, newest created_at) - cheap change detection for polling
Fingerprint = tuple[int, datetime | None]


class SongCatalog(Protocol):
    async def insert(self, song: NewSong) -> Song: ...

    async def list_all(self) -> list[Song]:
        """All songs, newest first."""
        ...

    async def list_by_user_since(self, user_id: str, since: datetime) -> list[Song]:
        """A member's suggestions created at or after `since`, oldest first."""
        ...

    async def fingerprint(self) -> Fingerprint: ...


class VoteLedger(Protocol):
    async def insert_if_absent(self, song_id: str, user_id: str) -> VoteInsert:
        """
        Atomically record the (song, user) pair.

        Must be a single check-and-insert at the store, never a read
        followed by a write.
        """
        ...

    async def list_for_song(self, song_id: str) -> list[Vote]: ...

    async def list_all(self) -> list[Vote]: ...

    async def list_song_ids_for_user(self, user_id: str) -> set[str]: ...

    async def fingerprint(self) -> Fingerprint: ...


class UserDirectory(Protocol):
    async def get(self, user_id: str) -> User | None: ...

    async def find_by_name(self, name: str) -> User | None: ...

    async def find_by_phone(self, phone_number: str) -> User | None: ...

    async def insert(self, name: str, phone_number: str | None) -> User:
        """Create a member; raises ConflictError if name or phone is taken."""
        ...
