"""
Application context

Built once per application and stored on ``app.state``; request handlers
reach it through FastAPI dependencies.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from app.core.config import Settings
from app.core.database import Database, create_database
from app.models import UserRepository


@dataclass
class AppContext:
    settings: Settings
    db: Database
    users: UserRepository


def build_context(settings: Settings, database: Optional[Database] = None) -> AppContext:
    db = database if database is not None else create_database(settings)
    return AppContext(settings=settings, db=db, users=UserRepository(db))


def get_context(request: Request) -> AppContext:
    """Dependency for getting the application context"""
    return request.app.state.context


def get_users(context: AppContext = Depends(get_context)) -> UserRepository:
    """Dependency for getting the user repository"""
    return context.users
