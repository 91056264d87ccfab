"""Models package exports."""

from messenger.models.auth import (
    LoginRequest,
    RegisterRequest,
    SendMessageRequest,
    VerifyRequest,
)
from messenger.models.message import Message
from messenger.models.user import User

__all__ = [
    "LoginRequest",
    "Message",
    "RegisterRequest",
    "SendMessageRequest",
    "User",
    "VerifyRequest",
]
