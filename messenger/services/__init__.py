"""Services package exports."""

from messenger.services.auth_service import AuthService
from messenger.services.logging_service import configure_logging, get_logger
from messenger.services.message_service import MessageService
from messenger.services.session_store import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
    create_session_store,
)
from messenger.services.user_service import UserService

__all__ = [
    "AuthService",
    "InMemorySessionStore",
    "MessageService",
    "RedisSessionStore",
    "SessionStore",
    "UserService",
    "configure_logging",
    "create_session_store",
    "get_logger",
]
