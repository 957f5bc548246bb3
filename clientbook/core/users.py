# clientbook/core/users.py
"""
FastAPI Users configuration and authentication setup.
Bearer JWT tokens are issued at login and attached by every client of the API.
"""
import logging
import uuid
from typing import Optional, Union

from fastapi import Depends, Request
from fastapi_users import BaseUserManager, FastAPIUsers, InvalidPasswordException, UUIDIDMixin
from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
    JWTStrategy,
)
from fastapi_users.db import SQLAlchemyUserDatabase
from fastapi_users.password import PasswordHelper
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.engine import async_session_maker, get_session
from ..models.user import User
from ..schemas.user import UserCreate
from .config import settings
from .constants import MIN_PASSWORD_LENGTH

logger = logging.getLogger(__name__)

# --- Configuration ---
SECRET = settings.secret_key
if not SECRET:
    raise RuntimeError("FATAL: SECRET_KEY not configured in .env")

ACCESS_TOKEN_LIFETIME_SECONDS = settings.access_token_lifetime_seconds

# --- Authentication Transport ---
# Bearer Token Transport (Authorization header)
bearer_transport = BearerTransport(tokenUrl="auth/jwt/login")


# --- JWT Strategy ---
def get_jwt_strategy() -> JWTStrategy:
    """Returns JWT strategy for token generation and validation"""
    return JWTStrategy(secret=SECRET, lifetime_seconds=ACCESS_TOKEN_LIFETIME_SECONDS)


auth_backend_jwt = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)


# --- User Manager ---
class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    """
    User manager handles user lifecycle events and business logic.
    """

    reset_password_token_secret = SECRET
    verification_token_secret = SECRET

    async def validate_password(
        self, password: str, user: Union[UserCreate, User]
    ) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidPasswordException(
                reason=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        """Called after successful user registration"""
        logger.info(f"User registered: {user.email}")

    async def on_after_login(
        self, user: User, request: Optional[Request] = None, response=None
    ):
        """Called after successful login"""
        logger.info(f"User logged in: {user.email}")


# --- Dependency Injectors ---
async def get_user_db(session: AsyncSession = Depends(get_session)):
    """Dependency to get the user database adapter."""
    yield SQLAlchemyUserDatabase(session, User)


# --- Argon2 Password Helper ---
argon2_context = CryptContext(schemes=["argon2"], deprecated="auto")
password_helper = PasswordHelper(argon2_context)


async def get_user_manager(user_db=Depends(get_user_db)):
    """
    Dependency to get the user manager instance.
    Uses Argon2 for password hashing via PasswordHelper.
    """
    yield UserManager(user_db, password_helper)


# --- FastAPI Users Instance ---
fastapi_users = FastAPIUsers[User, uuid.UUID](
    get_user_manager,
    [auth_backend_jwt],
)

# --- Dependency Shortcuts ---
current_active_user = fastapi_users.current_user(active=True)


async def resolve_user_from_token(token: Optional[str]) -> Optional[User]:
    """
    Validate a raw JWT outside the dependency system (WebSocket handshakes).
    Returns the active user or None.
    """
    if not token:
        return None
    async with async_session_maker() as session:
        manager = UserManager(SQLAlchemyUserDatabase(session, User), password_helper)
        user = await get_jwt_strategy().read_token(token, manager)
    if user is None or not user.is_active:
        return None
    return user
