from unittest.mock import AsyncMock

import psycopg
import pytest
from psycopg import errors as pg_errors

from app.db.helpers import DatabaseError, with_db_retry
from app.features.songboard.domain import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from app.features.songboard.repository import SongCatalog, SongRepository, UserRepository, VoteRepository
from app.features.songboard.repository.errors import translate_database_error


def _db_error(original: Exception, recoverable: bool = False) -> DatabaseError:
    return DatabaseError("Query failed", operation="fetch_one", recoverable=recoverable, original=original)


def test_foreign_key_violation_is_not_found():
    error = translate_database_error(_db_error(pg_errors.ForeignKeyViolation("fk")), "insert_vote")

    assert isinstance(error, NotFoundError)
    assert error.field == "song_id"


def test_unique_violation_is_conflict():
    error = translate_database_error(_db_error(pg_errors.UniqueViolation("dup")), "insert_user")

    assert isinstance(error, ConflictError)


@pytest.mark.parametrize("original", [pg_errors.InvalidTextRepresentation("uuid"), pg_errors.CheckViolation("check")])
def test_malformed_values_are_validation_errors(original):
    assert isinstance(translate_database_error(_db_error(original), "get_song"), ValidationError)


def test_connection_failures_are_retryable_storage_errors():
    error = translate_database_error(
        _db_error(psycopg.OperationalError("connection refused"), recoverable=True), "insert_vote"
    )

    assert isinstance(error, StorageError)
    assert error.retryable is True
    assert error.operation == "insert_vote"


def test_other_failures_are_not_retryable():
    error = translate_database_error(_db_error(pg_errors.InsufficientPrivilege("denied")), "insert_vote")

    assert isinstance(error, StorageError)
    assert error.retryable is False


@pytest.mark.asyncio
async def test_insert_if_absent_reports_inserted(monkeypatch):
    fetch = AsyncMock(return_value={"song_id": "s-1"})
    monkeypatch.setattr("app.features.songboard.repository.vote_repository.fetch_one", fetch)

    result = await VoteRepository().insert_if_absent("s-1", "u-1")

    assert result.inserted is True
    query, params = fetch.await_args.args
    assert "ON CONFLICT (song_id, user_id) DO NOTHING" in query
    assert params == ("s-1", "u-1")


@pytest.mark.asyncio
async def test_insert_if_absent_duplicate_is_not_an_error(monkeypatch):
    monkeypatch.setattr(
        "app.features.songboard.repository.vote_repository.fetch_one", AsyncMock(return_value=None)
    )

    result = await VoteRepository().insert_if_absent("s-1", "u-1")

    assert result.inserted is False


@pytest.mark.asyncio
async def test_insert_if_absent_translates_driver_errors(monkeypatch):
    monkeypatch.setattr(
        "app.features.songboard.repository.vote_repository.fetch_one",
        AsyncMock(side_effect=_db_error(psycopg.OperationalError("reset"), recoverable=True)),
    )

    with pytest.raises(StorageError) as exc_info:
        await VoteRepository().insert_if_absent("s-1", "u-1")

    assert exc_info.value.retryable is True


@pytest.mark.asyncio
async def test_user_lookup_maps_rows(monkeypatch):
    monkeypatch.setattr(
        "app.features.songboard.repository.user_repository.fetch_one",
        AsyncMock(return_value={"id": "u-1", "name": "Alice", "phone_number": None}),
    )

    user = await UserRepository().find_by_name("Alice")

    assert user.id == "u-1"
    assert user.display_name == "Alice"


@pytest.mark.asyncio
async def test_with_db_retry_retries_recoverable(monkeypatch):
    monkeypatch.setattr("app.db.helpers.asyncio.sleep", AsyncMock())
    calls = []

    @with_db_retry(max_retries=2, base_delay=0.1)
    async def read():
        calls.append(1)
        if len(calls) < 3:
            raise _db_error(psycopg.OperationalError("reset"), recoverable=True)
        return "rows"

    assert await read() == "rows"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_with_db_retry_stops_on_unrecoverable():
    calls = []

    @with_db_retry(max_retries=2, base_delay=0.1)
    async def read():
        calls.append(1)
        raise _db_error(pg_errors.UndefinedTable("missing"))

    with pytest.raises(DatabaseError):
        await read()
    assert len(calls) == 1


def test_song_catalog_surface_matches_callers():
    public = {"insert", "list_all", "list_by_user_since", "fingerprint"}

    assert {name for name in vars(SongCatalog) if not name.startswith("_")} == public
    assert not hasattr(SongRepository, "get")
