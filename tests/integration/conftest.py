"""In-memory stand-ins for the record stores, shared by every request in a test."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import patch
from uuid import uuid4

import pytest

from messenger.models.message import Message
from messenger.models.user import User
from messenger.services.auth_service import AuthService


class DuplicateUsername(Exception):
    pass


class FakeUserStore:
    """Same interface as UserService, backed by a dict."""

    def __init__(self):
        self.auth_service = AuthService()
        self.users: dict[str, tuple[User, str]] = {}

    async def create_user(self, username, password, is_admin=False, is_verified=False) -> User:
        if username in self.users:
            raise DuplicateUsername(username)
        user = User(
            id=uuid4(),
            username=username,
            is_admin=is_admin,
            is_verified=is_verified,
            created_at=datetime.now(timezone.utc),
        )
        self.users[username] = (user, self.auth_service.hash_password(password))
        return user

    async def get_by_username(self, username) -> Optional[tuple[User, str]]:
        return self.users.get(username)

    async def list_users(self) -> list[User]:
        return [user for user, _ in self.users.values()]

    async def list_verified_users(self, exclude_username) -> list[User]:
        return [
            user
            for user, _ in self.users.values()
            if user.is_verified and user.username != exclude_username
        ]

    async def set_verified(self, username, is_verified) -> Optional[User]:
        if username not in self.users:
            return None
        user, password_hash = self.users[username]
        user = user.model_copy(update={"is_verified": is_verified})
        self.users[username] = (user, password_hash)
        return user


class FakeMessageStore:
    """Same interface as MessageService, backed by a list.

    Timestamps advance one second per message so ordering is deterministic.
    """

    def __init__(self):
        self.messages: list[Message] = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.queries = 0

    async def send_message(self, sender, receiver, text) -> Message:
        self._clock += timedelta(seconds=1)
        message = Message(
            id=uuid4(),
            sender=sender,
            receiver=receiver,
            message=text,
            timestamp=self._clock,
        )
        # Insert out of order to make sure reads sort
        self.messages.insert(0, message)
        return message

    async def get_conversation(self, user_a, user_b) -> list[Message]:
        self.queries += 1
        pair = {(user_a, user_b), (user_b, user_a)}
        return sorted(
            (m for m in self.messages if (m.sender, m.receiver) in pair),
            key=lambda m: m.timestamp,
        )


@pytest.fixture
def stores(client):
    """Patch every handler module to share one fake user store and one fake message store."""
    users = FakeUserStore()
    messages = FakeMessageStore()

    with (
        patch("messenger.api.auth.UserService", return_value=users),
        patch("messenger.api.users.UserService", return_value=users),
        patch("messenger.api.admin.UserService", return_value=users),
        patch("messenger.api.users.MessageService", return_value=messages),
        patch("messenger.api.admin.MessageService", return_value=messages),
    ):
        yield users, messages


@pytest.fixture
def seeded_admin(stores):
    """An admin created the way the operator CLI would."""
    import asyncio

    users, _ = stores
    return asyncio.run(users.create_user("root", "rootpw", is_admin=True, is_verified=True))
