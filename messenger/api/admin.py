"""Admin endpoints: user overview, verification and conversation audit."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse, RedirectResponse
import structlog

from messenger.api.dependencies import form_or_json, require_admin
from messenger.models.auth import VerifyRequest
from messenger.models.user import User
from messenger.services.message_service import MessageService
from messenger.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

VERIFY_ACTIONS = {"verify": True, "unverify": False}


@router.get("")
async def admin_panel(admin: User = Depends(require_admin)):
    """List all users (admin only)."""
    user_service = UserService()
    try:
        users = await user_service.list_users()
    except Exception:
        logger.exception("admin_list_users_failed", admin=admin.username)
        return PlainTextResponse(
            "Error retrieving users",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return {
        "view": "adminPanel",
        "users": [u.model_dump(mode="json") for u in users],
    }


@router.post("/verify")
async def verify_user(
    admin: User = Depends(require_admin),
    request: VerifyRequest = Depends(form_or_json(VerifyRequest)),
):
    """Verify or unverify a user (admin only).

    An unrecognized action keeps the current flag; the record is still
    written back and the admin is redirected as for a real change.

    Raises:
        HTTPException 404: If the user does not exist
    """
    user_service = UserService()
    updated = None
    try:
        result = await user_service.get_by_username(request.username)
        if result is not None:
            user, _ = result
            is_verified = VERIFY_ACTIONS.get(request.action, user.is_verified)
            if request.action not in VERIFY_ACTIONS:
                logger.warning("admin_verify_unknown_action", action=request.action)

            # None when the user disappeared between lookup and update
            updated = await user_service.set_verified(user.username, is_verified)
    except Exception:
        logger.exception("admin_verify_failed", admin=admin.username, username=request.username)
        return PlainTextResponse(
            "Error verifying/unverifying user",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if updated is None:
        logger.warning("admin_verify_user_not_found", admin=admin.username, username=request.username)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    logger.info(
        "admin_verified_user",
        admin=admin.username,
        username=updated.username,
        is_verified=updated.is_verified,
    )
    return RedirectResponse("/admin", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/messages")
async def audit_messages(
    user1: Optional[str] = None,
    user2: Optional[str] = None,
    admin: User = Depends(require_admin),
):
    """Conversation between two users, oldest first (admin only).

    Without both usernames the admin is sent back to the panel.
    """
    if not user1 or not user2:
        return RedirectResponse("/admin", status_code=status.HTTP_303_SEE_OTHER)

    message_service = MessageService()
    try:
        messages = await message_service.get_conversation(user1, user2)
    except Exception:
        logger.exception("admin_audit_failed", admin=admin.username, user1=user1, user2=user2)
        return PlainTextResponse(
            "Error retrieving messages",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    logger.info("admin_audited_conversation", admin=admin.username, user1=user1, user2=user2)
    return {
        "view": "adminMessages",
        "sender": user1,
        "receiver": user2,
        "messages": [m.model_dump(mode="json") for m in messages],
    }
