"""User record model."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class User(BaseModel):
    """A registered account.

    The password hash is deliberately not part of this model; it is only
    returned alongside a User by ``UserService.get_by_username``.
    """

    id: UUID
    username: str
    is_admin: bool = False
    is_verified: bool = False
    created_at: datetime
