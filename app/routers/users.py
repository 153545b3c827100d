"""
User endpoints
"""
import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.context import AppContext, get_context, get_users
from app.core.errors import DuplicateUserError, ValidationFailed
from app.models import UserRepository
from app.utils.validator import normalize_user_data, validate_user_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["users"])

# Largest value a SQLite INTEGER can hold
MAX_USER_ID = 2 ** 63 - 1


class CreateUserRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


def parse_user_id(raw: str) -> Optional[int]:
    """Positive decimal id, or None"""
    if not re.fullmatch(r"[0-9]+", raw):
        return None
    user_id = int(raw)
    if user_id <= 0 or user_id > MAX_USER_ID:
        return None
    return user_id


@router.post("/add", status_code=201)
async def add_user(
    payload: CreateUserRequest,
    users: UserRepository = Depends(get_users),
    context: AppContext = Depends(get_context),
):
    """
    Create a new user
    Body: {username, email, phone}
    """
    data = payload.model_dump()
    errors = validate_user_data(data, context.settings)
    if errors:
        raise ValidationFailed(errors)

    try:
        user = await users.create(**normalize_user_data(data))
    except DuplicateUserError as exc:
        logger.warning("Rejected duplicate user: %s", exc)
        return JSONResponse(
            status_code=409,
            content={"success": False, "message": exc.message, "errors": [exc.to_error()]},
        )

    return {"success": True, "message": "User created successfully", "data": user}


@router.get("/{user_id}")
async def get_user(user_id: str, users: UserRepository = Depends(get_users)):
    """
    Get user details by ID
    """
    parsed_id = parse_user_id(user_id)
    if parsed_id is None:
        return JSONResponse(status_code=400, content={"success": False, "message": "Invalid user ID"})

    user = await users.find_by_id(parsed_id)
    if not user:
        return JSONResponse(status_code=404, content={"success": False, "message": "User not found"})

    return {"success": True, "data": user}


@router.get("")
@router.get("/", include_in_schema=False)
async def list_users(users: UserRepository = Depends(get_users)):
    """
    Get all users, newest first
    """
    rows = await users.find_all()
    return {"success": True, "count": len(rows), "data": rows}
