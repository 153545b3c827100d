"""
Tests for error handling
"""
import logging

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.database import Database, MemoryDatabase, Statement
from app.core.errors import AppError, DatabaseConnectionError, DatabaseError, DuplicateUserError, ValidationFailed
from app.main import create_app
from app.middleware.error_handlers import error_response


class FailingStatement(Statement):

    def __init__(self, sql, error):
        super().__init__(sql)
        self.error = error

    async def first(self):
        raise self.error

    async def all(self):
        raise self.error

    async def run(self):
        raise self.error


class FailingDatabase(Database):
    name = "failing"

    def __init__(self, error):
        self.error = error

    def prepare(self, sql):
        return FailingStatement(sql, self.error)


def make_client(database=None, settings=None):
    app = create_app(settings=settings, database=database or MemoryDatabase())

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    @app.get("/teapot")
    async def teapot():
        raise AppError("short and stout", status_code=418)

    return TestClient(app, raise_server_exceptions=False)


def test_unmatched_route():
    """Test 404 envelope carries the attempted path"""
    with make_client() as client:
        response = client.get("/does/not/exist")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route not found", "path": "/does/not/exist"}


@pytest.mark.parametrize("method,path", [
    ("POST", "/user"),
    ("DELETE", "/user/1"),
    ("PUT", "/user/add"),
])
def test_unrouted_method_is_not_found(method, path):
    """Test a known path with an unrouted method gets the 404 envelope"""
    with make_client() as client:
        response = client.request(method, path)
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route not found", "path": path}


def test_unmatched_route_is_logged(caplog):
    """Test not-found responses are logged"""
    with make_client() as client:
        with caplog.at_level(logging.WARNING, logger="app.middleware.error_handlers"):
            client.get("/nowhere")
    assert any("/nowhere" in record.getMessage() for record in caplog.records)


def test_connection_error_is_503():
    with make_client(FailingDatabase(DatabaseConnectionError("unable to open database file"))) as client:
        response = client.get("/user")
    assert response.status_code == 503
    assert response.json() == {
        "success": False,
        "message": "Database connection error",
        "error": "unable to open database file",
    }


def test_database_error_is_500():
    with make_client(FailingDatabase(DatabaseError("disk I/O error"))) as client:
        response = client.get("/user/1")
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Database error", "error": "disk I/O error"}


def test_database_error_on_create_is_not_409():
    """Test only uniqueness failures become conflicts"""
    with make_client(FailingDatabase(DatabaseError("disk I/O error"))) as client:
        response = client.post("/user/add", json={"username": "alice", "email": "a@b.com", "phone": "5551234567"})
    assert response.status_code == 500


def test_unclassified_error_uses_status_code():
    with make_client() as client:
        response = client.get("/teapot")
    assert response.status_code == 418
    assert response.json() == {"success": False, "message": "short and stout"}


def test_unhandled_error_hides_stack_in_production():
    with make_client(settings=Settings(ENVIRONMENT="production")) as client:
        response = client.get("/boom")
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "kaboom"}


def test_unhandled_error_includes_stack_in_development(dev_settings):
    with make_client(settings=dev_settings) as client:
        response = client.get("/boom")
    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "kaboom"
    assert "RuntimeError" in body["stack"]


@pytest.mark.parametrize("error,status_code", [
    (ValidationFailed([{"field": "email", "message": "Email is required"}]), 400),
    (DuplicateUserError("email"), 409),
    (DatabaseError("boom"), 500),
    (DatabaseConnectionError("down"), 503),
    (ValueError("bad"), 500),
])
def test_error_response_status_by_kind(error, status_code):
    response = error_response(error)
    assert response.status_code == status_code


def test_error_response_validation_body():
    response = error_response(ValidationFailed([{"field": "email", "message": "Email is required"}]))
    assert response.body == (
        b'{"success":false,"message":"Validation failed",'
        b'"errors":[{"field":"email","message":"Email is required"}]}'
    )
