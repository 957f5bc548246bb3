"""
User model for FastAPI Users with SQLModel.
Combines FastAPI Users base fields with the account's display name.
"""

import uuid as uuid_pkg

from sqlmodel import Field, SQLModel

from ..core.constants import DEFAULT_USER_NAME


class User(SQLModel, table=True):
    """
    User model combining FastAPI Users authentication fields with custom fields.

    FastAPI Users provides minimal required fields:
    - id: UUID (primary key)
    - email: str (unique, indexed)
    - hashed_password: str
    - is_active: bool (default True)
    - is_superuser: bool (default False)
    - is_verified: bool (default False)

    Custom fields:
    - name: display name shown in the dashboard
    """

    __tablename__ = "users"

    # FastAPI Users required fields
    id: uuid_pkg.UUID = Field(default_factory=uuid_pkg.uuid4, primary_key=True, nullable=False)
    email: str = Field(unique=True, index=True, nullable=False, max_length=320)
    hashed_password: str = Field(nullable=False, max_length=1024)
    is_active: bool = Field(default=True, nullable=False)
    is_superuser: bool = Field(default=False, nullable=False)
    is_verified: bool = Field(default=False, nullable=False)

    # Custom fields
    name: str = Field(default=DEFAULT_USER_NAME, max_length=100)

    @property
    def disabled(self) -> bool:
        return not self.is_active
