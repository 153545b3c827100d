"""
User Model

Repository over the ``Users`` table. Callers pass already validated and
normalized values.
"""
import logging
from typing import Optional

from app.core.database import Database, Row
from app.core.errors import DuplicateUserError, UniqueViolation

logger = logging.getLogger(__name__)

USER_COLUMNS = "id, username, email, phone, createdAt, updatedAt"


class UserRepository:

    def __init__(self, db: Database):
        self.db = db

    async def create(self, username: str, email: str, phone: str) -> Optional[Row]:
        """
        Insert a user and read it back by the generated id

        Raises DuplicateUserError when username or email is taken.
        """
        sql = """
            INSERT INTO Users (username, email, phone, createdAt, updatedAt)
            VALUES (?, ?, ?, datetime('now'), datetime('now'))
        """
        try:
            result = await self.db.prepare(sql).bind(username, email, phone).run()
        except UniqueViolation as exc:
            raise DuplicateUserError(exc.column) from exc

        logger.info("Created user %s (id=%s)", username, result.last_row_id)
        return await self.find_by_id(result.last_row_id)

    async def find_by_id(self, user_id: int) -> Optional[Row]:
        sql = f"SELECT {USER_COLUMNS} FROM Users WHERE id = ?"
        return await self.db.prepare(sql).bind(user_id).first()

    async def find_by_email(self, email: str) -> Optional[Row]:
        sql = f"SELECT {USER_COLUMNS} FROM Users WHERE email = ?"
        return await self.db.prepare(sql).bind(email).first()

    async def find_by_username(self, username: str) -> Optional[Row]:
        sql = f"SELECT {USER_COLUMNS} FROM Users WHERE username = ?"
        return await self.db.prepare(sql).bind(username).first()

    async def find_all(self) -> list[Row]:
        """All users, newest first"""
        sql = f"SELECT {USER_COLUMNS} FROM Users ORDER BY createdAt DESC, id DESC"
        return await self.db.prepare(sql).all()

    async def update(self, user_id: int, data: dict) -> Optional[Row]:
        """
        Overwrite username/email/phone and refresh updatedAt

        A missing id writes nothing and returns None.
        """
        sql = """
            UPDATE Users
            SET username = ?, email = ?, phone = ?, updatedAt = datetime('now')
            WHERE id = ?
        """
        try:
            await self.db.prepare(sql).bind(
                data.get("username"), data.get("email"), data.get("phone"), user_id
            ).run()
        except UniqueViolation as exc:
            raise DuplicateUserError(exc.column) from exc

        return await self.find_by_id(user_id)

    async def delete(self, user_id: int) -> bool:
        result = await self.db.prepare("DELETE FROM Users WHERE id = ?").bind(user_id).run()
        return result.changes > 0
