"""
Postgres-backed member directory for the name + phone identification scheme.
"""

from app.db.helpers import DatabaseError, fetch_one
from app.features.songboard.domain import StorageError, User
from app.features.songboard.repository.errors import translate_database_error
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class UserRepository:
    USER_SELECT_COLUMNS = "id, name, phone_number"

    @staticmethod
    def _row_to_user(row: dict | None) -> User | None:
        if not row:
            return None
        return User(id=str(row["id"]), display_name=row["name"], phone_number=row.get("phone_number"))

    async def _fetch_user(self, where: str, value: str, operation: str) -> User | None:
        query = f"SELECT {self.USER_SELECT_COLUMNS} FROM users WHERE {where} = %s"
        try:
            row = await fetch_one(query, (value,))
        except DatabaseError as e:
            raise translate_database_error(e, operation) from e
        return self._row_to_user(row)

    async def get(self, user_id: str) -> User | None:
        return await self._fetch_user("id", user_id, "get_user")

    async def find_by_name(self, name: str) -> User | None:
        return await self._fetch_user("name", name, "find_user_by_name")

    async def find_by_phone(self, phone_number: str) -> User | None:
        return await self._fetch_user("phone_number", phone_number, "find_user_by_phone")

    async def insert(self, name: str, phone_number: str | None) -> User:
        query = f"""
            INSERT INTO users (name, phone_number)
            VALUES (%s, %s)
            RETURNING {self.USER_SELECT_COLUMNS}
        """
        try:
            row = await fetch_one(query, (name, phone_number))
        except DatabaseError as e:
            raise translate_database_error(e, "insert_user") from e

        user = self._row_to_user(row)
        if user is None:
            raise StorageError("User insert returned no row", operation="insert_user")

        logger.info("Member registered", user_id=user.id)
        return user
