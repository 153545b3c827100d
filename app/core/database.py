"""
Database Connection and Setup

Prepared-statement interface (prepare -> bind -> first/all/run) with two
implementations: a SQLAlchemy engine and an in-memory store used when no
DATABASE_URL is configured.
"""
import copy
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.errors import DatabaseConnectionError, DatabaseError, UniqueViolation

logger = logging.getLogger(__name__)

Row = dict[str, Any]

USERS_SCHEMA = """
CREATE TABLE IF NOT EXISTS Users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL UNIQUE,
    phone TEXT NOT NULL,
    createdAt TEXT DEFAULT CURRENT_TIMESTAMP,
    updatedAt TEXT DEFAULT CURRENT_TIMESTAMP
)
"""

# Statements use the SQLite dialect (datetime('now'), AUTOINCREMENT, lastrowid)
_UNIQUE_COLUMN = re.compile(r"UNIQUE constraint failed: \w+\.(\w+)")


@dataclass
class RunResult:
    """Outcome of a statement executed without fetching rows"""
    changes: int = 0
    last_row_id: Optional[int] = None


class Statement(ABC):
    """A SQL template with positional ``?`` placeholders"""

    def __init__(self, sql: str):
        self.sql = sql
        self.params: tuple = ()

    def bind(self, *params) -> "Statement":
        bound = copy.copy(self)
        bound.params = params
        return bound

    @abstractmethod
    async def first(self) -> Optional[Row]:
        ...

    @abstractmethod
    async def all(self) -> list[Row]:
        ...

    @abstractmethod
    async def run(self) -> RunResult:
        ...


class Database(ABC):
    name: str = "database"

    @abstractmethod
    def prepare(self, sql: str) -> Statement:
        ...

    def close(self) -> None:
        pass


# ==================== SQLAlchemy ====================

def _named_binds(sql: str, params: tuple) -> tuple[str, dict]:
    """Rewrite ``?`` placeholders as ``:p0, :p1, ...`` for ``text()``"""
    expected = sql.count("?")
    if expected != len(params):
        raise DatabaseError(f"Statement expects {expected} parameters, got {len(params)}")
    counter = iter(range(expected))
    named = re.sub(r"\?", lambda _: f":p{next(counter)}", sql)
    return named, {f"p{i}": value for i, value in enumerate(params)}


def _unique_column(message: str) -> Optional[str]:
    match = _UNIQUE_COLUMN.search(message)
    return match.group(1) if match else None


class SQLAlchemyStatement(Statement):

    def __init__(self, sql: str, engine: Engine):
        super().__init__(sql)
        self._engine = engine

    def _execute(self, mode: str):
        sql, params = _named_binds(self.sql, self.params)
        try:
            conn = self._engine.connect()
        except SQLAlchemyError as exc:
            raise DatabaseConnectionError(str(exc)) from exc

        try:
            with conn.begin():
                result = conn.execute(text(sql), params)
                if mode == "first":
                    row = result.mappings().first()
                    return dict(row) if row is not None else None
                if mode == "all":
                    return [dict(row) for row in result.mappings().all()]
                return RunResult(changes=max(result.rowcount, 0), last_row_id=result.lastrowid)
        except IntegrityError as exc:
            message = str(exc.orig)
            column = _unique_column(message)
            if column:
                raise UniqueViolation(column, message) from exc
            raise DatabaseError(message) from exc
        except DBAPIError as exc:
            if exc.connection_invalidated:
                raise DatabaseConnectionError(str(exc.orig)) from exc
            raise DatabaseError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise DatabaseError(str(exc)) from exc
        finally:
            conn.close()

    async def first(self) -> Optional[Row]:
        return await run_in_threadpool(self._execute, "first")

    async def all(self) -> list[Row]:
        return await run_in_threadpool(self._execute, "all")

    async def run(self) -> RunResult:
        return await run_in_threadpool(self._execute, "run")


class SQLAlchemyDatabase(Database):
    name = "sqlalchemy"

    def __init__(self, engine: Engine):
        self.engine = engine

    def prepare(self, sql: str) -> Statement:
        return SQLAlchemyStatement(sql, self.engine)

    def close(self) -> None:
        self.engine.dispose()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    if url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        # One shared connection, otherwise every checkout gets an empty database
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)
    return create_engine(url, pool_pre_ping=True, echo=echo)


# ==================== In-memory ====================

_WHERE_COLUMN = re.compile(r"WHERE\s+(\w+)\s*=\s*\?", re.IGNORECASE)


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class MemoryStatement(Statement):
    """
    Understands only the statement shapes the user repository issues:
    CREATE TABLE, INSERT, SELECT by one column, SELECT all, UPDATE/DELETE by id.
    """

    def __init__(self, sql: str, store: "MemoryDatabase"):
        super().__init__(sql)
        self._store = store

    def _execute(self):
        statement = " ".join(self.sql.split())
        verb = statement.split(" ", 1)[0].upper()

        if verb == "CREATE":
            return RunResult()
        if verb == "INSERT":
            return self._store.insert(*self.params)
        if verb == "UPDATE":
            return self._store.update(*self.params)
        if verb == "DELETE":
            return self._store.delete(*self.params)
        if verb == "SELECT":
            match = _WHERE_COLUMN.search(statement)
            if match:
                return self._store.select_where(match.group(1), *self.params)
            return self._store.select_all()

        raise DatabaseError(f"Unsupported statement for in-memory database: {statement}")

    async def first(self) -> Optional[Row]:
        result = self._execute()
        if isinstance(result, RunResult):
            return None
        return result[0] if result else None

    async def all(self) -> list[Row]:
        result = self._execute()
        if isinstance(result, RunResult):
            return []
        return result

    async def run(self) -> RunResult:
        result = self._execute()
        if isinstance(result, RunResult):
            return result
        return RunResult()


class MemoryDatabase(Database):
    name = "memory"

    unique_columns = ("username", "email")

    def __init__(self):
        self.rows: list[Row] = []
        self.next_id = 1

    def prepare(self, sql: str) -> Statement:
        return MemoryStatement(sql, self)

    def _check_unique(self, values: dict, exclude_id: Optional[int] = None):
        for column in self.unique_columns:
            for row in self.rows:
                if row["id"] != exclude_id and row[column] == values[column]:
                    raise UniqueViolation(column)

    def insert(self, username, email, phone) -> RunResult:
        self._check_unique({"username": username, "email": email})
        now = _now()
        row = {
            "id": self.next_id,
            "username": username,
            "email": email,
            "phone": phone,
            "createdAt": now,
            "updatedAt": now,
        }
        self.next_id += 1
        self.rows.append(row)
        return RunResult(changes=1, last_row_id=row["id"])

    def update(self, username, email, phone, user_id) -> RunResult:
        row = next((r for r in self.rows if r["id"] == user_id), None)
        if row is None:
            return RunResult(changes=0)
        self._check_unique({"username": username, "email": email}, exclude_id=user_id)
        row.update(username=username, email=email, phone=phone, updatedAt=_now())
        return RunResult(changes=1)

    def delete(self, user_id) -> RunResult:
        before = len(self.rows)
        self.rows = [r for r in self.rows if r["id"] != user_id]
        return RunResult(changes=before - len(self.rows))

    def select_where(self, column: str, value) -> list[Row]:
        return [dict(r) for r in self.rows if r.get(column) == value]

    def select_all(self) -> list[Row]:
        ordered = sorted(self.rows, key=lambda r: (r["createdAt"], r["id"]), reverse=True)
        return [dict(r) for r in ordered]


# ==================== Setup ====================

def create_database(settings: Settings) -> Database:
    """Pick the database implementation from settings"""
    if not settings.DATABASE_URL:
        logger.warning("DATABASE_URL not configured. Using in-memory database.")
        return MemoryDatabase()

    safe_url = make_url(settings.DATABASE_URL).render_as_string(hide_password=True)
    logger.info("Using SQL database at %s", safe_url)
    return SQLAlchemyDatabase(create_db_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO))


async def init_schema(db: Database) -> bool:
    """Create the Users table if it doesn't exist"""
    try:
        await db.prepare(USERS_SCHEMA).run()
    except (DatabaseError, DatabaseConnectionError) as exc:
        logger.error("Error initializing schema: %s", exc)
        return False

    logger.info("Database schema initialized successfully")
    return True
