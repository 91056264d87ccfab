"""User list, chat and message endpoints for logged-in users."""

from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse, RedirectResponse
import structlog

from messenger.api.dependencies import form_or_json, get_current_user
from messenger.config import get_settings
from messenger.models.auth import SendMessageRequest
from messenger.models.user import User
from messenger.services.message_service import MessageService
from messenger.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Messaging"])


@router.get("/users")
async def list_users(current_user: User = Depends(get_current_user)):
    """Verified users the current user can chat with."""
    user_service = UserService()
    try:
        users = await user_service.list_verified_users(exclude_username=current_user.username)
    except Exception:
        logger.exception("list_users_failed", username=current_user.username)
        return PlainTextResponse(
            "Error fetching users",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return {
        "view": "users",
        "current_user": current_user.username,
        "users": [u.model_dump(mode="json") for u in users],
    }


@router.get("/chat")
async def chat(
    username: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
) -> dict:
    """Conversation between the current user and ``username``, oldest first.

    Only the presence of ``username`` is checked; without it the request
    gets a 400 from the validation handler.
    """
    message_service = MessageService()
    messages = await message_service.get_conversation(current_user.username, username)

    return {
        "view": "chat",
        "username": username,
        "current_user": current_user.username,
        "messages": [m.model_dump(mode="json") for m in messages],
    }


@router.post("/send")
async def send(
    current_user: User = Depends(get_current_user),
    request: SendMessageRequest = Depends(form_or_json(SendMessageRequest)),
):
    """Store a message and go back to the chat with its receiver.

    The declared sender is stored as given and is not compared with the
    session (an omitted sender means the logged-in user). Turning on
    ``enforce_sender_identity`` rejects a sender other than the logged-in
    user with 403.
    """
    settings = get_settings()
    sender = request.sender or current_user.username

    if settings.enforce_sender_identity and sender != current_user.username:
        logger.warning(
            "sender_mismatch",
            username=current_user.username,
            declared_sender=sender,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )

    message_service = MessageService()
    try:
        await message_service.send_message(sender, request.receiver, request.message)
    except Exception:
        logger.exception("send_message_failed", sender=sender, receiver=request.receiver)
        return PlainTextResponse(
            "Error sending message",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return RedirectResponse(
        "/chat?" + urlencode({"username": request.receiver}),
        status_code=status.HTTP_303_SEE_OTHER,
    )
