"""
Shared fixtures
"""
import asyncio

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.database import MemoryDatabase, SQLAlchemyDatabase, create_db_engine, init_schema
from app.main import create_app
from app.models import UserRepository


@pytest.fixture
def memory_db():
    return MemoryDatabase()


@pytest.fixture
def sqlite_db():
    db = SQLAlchemyDatabase(create_db_engine("sqlite://"))
    asyncio.run(init_schema(db))
    yield db
    db.close()


@pytest.fixture(params=["memory", "sqlite"])
def database(request):
    """Both database implementations, schema created"""
    return request.getfixturevalue(f"{request.param}_db")


@pytest.fixture
def repo(database):
    return UserRepository(database)


@pytest.fixture
def client(memory_db):
    app = create_app(database=memory_db)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sqlite_client():
    app = create_app(database=SQLAlchemyDatabase(create_db_engine("sqlite://")))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def dev_settings():
    return Settings(ENVIRONMENT="development")
