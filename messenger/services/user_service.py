"""User record store."""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import structlog

from messenger.database import get_pool
from messenger.models.user import User
from messenger.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

USER_COLUMNS = "id, username, is_admin, is_verified, created_at"


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        is_admin=row["is_admin"],
        is_verified=row["is_verified"],
        created_at=row["created_at"],
    )


class UserService:
    """Service for user CRUD operations."""

    def __init__(self):
        self.auth_service = AuthService()

    async def create_user(
        self,
        username: str,
        password: str,
        is_admin: bool = False,
        is_verified: bool = False,
    ) -> User:
        """Create a new user with a hashed password.

        Args:
            username: Unique username
            password: Plain-text password (will be hashed)
            is_admin: Whether the user has admin privileges
            is_verified: Whether the user is visible to other users

        Returns:
            Created User model

        Raises:
            asyncpg.UniqueViolationError: If the username is taken
        """
        user_id = uuid4()
        now = datetime.now(timezone.utc)
        password_hash = self.auth_service.hash_password(password)

        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO users (id, username, password_hash, is_admin, is_verified, created_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                """,
                user_id,
                username,
                password_hash,
                is_admin,
                is_verified,
                now,
            )

        logger.info(
            "user_created",
            user_id=str(user_id),
            username=username,
            is_admin=is_admin,
        )

        return User(
            id=user_id,
            username=username,
            is_admin=is_admin,
            is_verified=is_verified,
            created_at=now,
        )

    async def get_by_username(self, username: str) -> Optional[tuple[User, str]]:
        """Get a user by exact username.

        Args:
            username: Username to look up

        Returns:
            Tuple of (User, password_hash) or None if not found
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {USER_COLUMNS}, password_hash
                FROM users
                WHERE username = $1
                """,
                username,
            )

        if row is None:
            return None

        return _row_to_user(row), row["password_hash"]

    async def list_users(self) -> list[User]:
        """Return every user, in insertion order."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {USER_COLUMNS}
                FROM users
                ORDER BY created_at ASC
                """
            )

        return [_row_to_user(row) for row in rows]

    async def list_verified_users(self, exclude_username: str) -> list[User]:
        """Return verified users other than ``exclude_username``.

        Args:
            exclude_username: Username left out of the result (the requester)

        Returns:
            List of verified User models
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {USER_COLUMNS}
                FROM users
                WHERE is_verified = TRUE AND username <> $1
                ORDER BY created_at ASC
                """,
                exclude_username,
            )

        return [_row_to_user(row) for row in rows]

    async def set_verified(self, username: str, is_verified: bool) -> Optional[User]:
        """Persist the verification flag for a user.

        Args:
            username: User to update
            is_verified: New flag value

        Returns:
            Updated User model, or None if user not found
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE users
                SET is_verified = $1
                WHERE username = $2
                RETURNING {USER_COLUMNS}
                """,
                is_verified,
                username,
            )

        if row is None:
            logger.warning("user_verify_not_found", username=username)
            return None

        logger.info(
            "user_verification_changed",
            username=username,
            is_verified=is_verified,
        )
        return _row_to_user(row)
