"""Direct message model."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class Message(BaseModel):
    """A message sent from one username to another. Never modified after creation."""

    id: UUID
    sender: str
    receiver: str
    message: str
    timestamp: datetime
