"""Request models for the account, messaging and admin endpoints.

Only presence is checked; usernames and passwords are otherwise accepted as given.
"""

from typing import Optional

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """Username and plain-text password, used for both register and login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(Credentials):
    """New account registration."""


class LoginRequest(Credentials):
    """Login credentials."""


class SendMessageRequest(BaseModel):
    """A message to deliver.

    Attributes:
        sender: Declared sender; defaults to the logged-in user when omitted
        receiver: Username of the recipient (not checked for existence)
        message: Message text
    """

    sender: Optional[str] = None
    receiver: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)


class VerifyRequest(BaseModel):
    """Admin verification change.

    ``action`` is normally ``"verify"`` or ``"unverify"``; any other value
    leaves the flag as it is.
    """

    username: str = Field(..., min_length=1)
    action: str
