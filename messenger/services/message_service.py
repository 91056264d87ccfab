"""Message record store."""

from datetime import datetime, timezone
from uuid import uuid4

import structlog

from messenger.database import get_pool
from messenger.models.message import Message

logger = structlog.get_logger(__name__)


class MessageService:
    """Service for storing and reading direct messages."""

    async def send_message(self, sender: str, receiver: str, text: str) -> Message:
        """Store a new message stamped with the current time.

        Neither username is checked against the users table.

        Args:
            sender: Sending username
            receiver: Receiving username
            text: Message body

        Returns:
            The stored Message
        """
        message_id = uuid4()
        now = datetime.now(timezone.utc)

        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO messages (id, sender, receiver, message, timestamp)
                VALUES ($1, $2, $3, $4, $5)
                """,
                message_id,
                sender,
                receiver,
                text,
                now,
            )

        logger.info(
            "message_sent",
            message_id=str(message_id),
            sender=sender,
            receiver=receiver,
        )

        return Message(
            id=message_id,
            sender=sender,
            receiver=receiver,
            message=text,
            timestamp=now,
        )

    async def get_conversation(self, user_a: str, user_b: str) -> list[Message]:
        """Return every message exchanged between two users, oldest first.

        The result is the same whichever order the two usernames are given in.
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, sender, receiver, message, timestamp
                FROM messages
                WHERE (sender = $1 AND receiver = $2)
                   OR (sender = $2 AND receiver = $1)
                ORDER BY timestamp ASC
                """,
                user_a,
                user_b,
            )

        return [
            Message(
                id=row["id"],
                sender=row["sender"],
                receiver=row["receiver"],
                message=row["message"],
                timestamp=row["timestamp"],
            )
            for row in rows
        ]
