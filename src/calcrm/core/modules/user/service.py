from typing import Any
from uuid import UUID

import bcrypt
import structlog
from pymongo.asynchronous.database import AsyncDatabase

from calcrm.core.core import Service
from calcrm.core.modules.user.models import User, UserRole
from calcrm.core.modules.user.validators import normalize_email, validate_password
from calcrm.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

BOOTSTRAP_ADMIN_EMAIL = "admin@calcrm.local"


def hash_password(password: str) -> str:
    # bcrypt only considers the first 72 bytes
    return bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))


class UserService(Service):
    """Manages users with in-memory cache."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")
        self._users: dict[UUID, User] = {}

    def get_user(self, user_id: UUID) -> User:
        """Get user by ID from cache."""
        if user_id not in self._users:
            raise NotFoundError(f"User '{user_id}' not found")
        return self._users[user_id]

    def has_user(self, user_id: UUID) -> bool:
        return user_id in self._users

    def find_by_email(self, email: str) -> User | None:
        email = email.strip().lower()
        return next((u for u in self._users.values() if u.email == email), None)

    async def create_user(
        self, name: str, email: str, password: str, designation: str = "", role: UserRole = UserRole.VIEWER
    ) -> User:
        """Create user with hashed password."""
        email = normalize_email(email)
        if self.find_by_email(email) is not None:
            raise ValidationError("User with this email already exists")

        validate_password(password)
        user = User(name=name.strip(), email=email, password_hash=hash_password(password), designation=designation, role=role)
        res = await self._collection.insert_one(user.to_mongo())
        logger.info("user_created", user_id=user.id, role=role)
        return await self.update_user_cache(res.inserted_id)

    def verify_password(self, email: str, password: str) -> User | None:
        """Return the user when the password matches its stored hash."""
        user = self.find_by_email(email)
        if user is None or not check_password(password, user.password_hash):
            return None
        return user

    async def ensure_admin_user_exists(self) -> None:
        """Create the bootstrap admin account when configured and no admin exists."""
        password = self.core.config.admin_password
        if not password or any(u.is_admin for u in self._users.values()):
            return
        await self.create_user("Administrator", BOOTSTRAP_ADMIN_EMAIL, password, role=UserRole.ADMIN)

    async def update_all_users_cache(self) -> None:
        """Reload all users cache from database."""
        users = await User.list_cursor(self._collection.find())
        self._users = {user.id: user for user in users}

    async def update_user_cache(self, user_id: UUID) -> User:
        """Reload a specific user cache from database."""
        user = await self._collection.find_one({"_id": user_id})
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        self._users[user_id] = User.model_validate(user)
        return self._users[user_id]

    async def on_start(self) -> None:
        """Initialize indexes, cache, and admin user."""
        await self._collection.create_index([("email", 1)], unique=True)
        await self.update_all_users_cache()
        await self.ensure_admin_user_exists()
        logger.debug("user_service_started", user_count=len(self._users))
