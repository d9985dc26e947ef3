"""
Translation of driver failures into song board errors.

This is the only place that looks at psycopg exception types; services
see ValidationError / NotFoundError / ConflictError / StorageError only.
"""

from psycopg import errors as pg_errors

from app.db.helpers import DatabaseError
from app.features.songboard.domain import (
    ConflictError,
    NotFoundError,
    SongboardError,
    StorageError,
    ValidationError,
)


def translate_database_error(error: DatabaseError, operation: str) -> SongboardError:
    original = error.original

    if isinstance(original, pg_errors.ForeignKeyViolation):
        constraint = getattr(original.diag, "constraint_name", None) or ""
        if "user" in constraint or "suggested_by" in constraint:
            return NotFoundError("Member does not exist", field="user_id")
        return NotFoundError("Song does not exist", field="song_id")

    if isinstance(original, pg_errors.UniqueViolation):
        constraint = getattr(original.diag, "constraint_name", None) or ""
        if "phone" in constraint:
            return ConflictError("Phone number is already registered", field="phone_number")
        return ConflictError("This name is already taken", field="display_name")

    if isinstance(original, (pg_errors.InvalidTextRepresentation, pg_errors.CheckViolation)):
        return ValidationError(f"Malformed value: {original}")

    return StorageError(
        f"{operation} failed: {error}",
        retryable=error.recoverable,
        operation=operation,
    )
