"""
Pydantic schemas for FastAPI Users.
These schemas control what data is sent/received via the API.
"""
import uuid
from typing import Optional

from fastapi_users import schemas
from pydantic import field_validator

from ..core.constants import DEFAULT_USER_NAME


class UserRead(schemas.BaseUser[uuid.UUID]):
    """
    Schema for reading user data (API responses).
    """

    name: str


class UserCreate(schemas.BaseUserCreate):
    """
    Schema for creating new users.
    Emails are stored lower-cased so login is case-insensitive.
    """

    name: str = DEFAULT_USER_NAME

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class UserUpdate(schemas.BaseUserUpdate):
    """
    Schema for updating existing users.
    All fields are optional.
    """

    name: Optional[str] = None
