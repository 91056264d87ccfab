"""Landing, registration, login and logout endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse, RedirectResponse
import structlog

from messenger.api.dependencies import form_or_json, get_session_store, get_session_token
from messenger.config import get_settings
from messenger.models.auth import LoginRequest, RegisterRequest
from messenger.services.auth_service import AuthService
from messenger.services.session_store import SessionStore
from messenger.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Auth"])

INVALID_CREDENTIALS = "Invalid credentials!"


@router.get("/")
async def landing() -> dict:
    """Login view."""
    return {"view": "login"}


@router.get("/register")
async def register_form() -> dict:
    """Registration view."""
    return {"view": "register"}


@router.post("/register")
async def register(request: RegisterRequest = Depends(form_or_json(RegisterRequest))):
    """Create an unverified, non-admin account.

    Any store failure, including a taken username, is reported as a
    generic 500 error.
    """
    user_service = UserService()
    try:
        user = await user_service.create_user(
            username=request.username,
            password=request.password,
        )
    except Exception:
        logger.exception("user_registration_failed", username=request.username)
        return PlainTextResponse(
            "Error registering user",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    logger.info("user_registered", username=user.username)
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/login")
async def login(
    request: LoginRequest = Depends(form_or_json(LoginRequest)),
    store: SessionStore = Depends(get_session_store),
):
    """Check credentials and open a session.

    Admins are sent to the admin panel, everyone else to the user list.
    An unknown username and a wrong password get the same response.
    """
    user_service = UserService()
    auth_service = AuthService()
    settings = get_settings()

    try:
        result = await user_service.get_by_username(request.username)

        if result is None or not auth_service.verify_password(request.password, result[1]):
            logger.info("login_failed", username=request.username)
            return PlainTextResponse(INVALID_CREDENTIALS)

        user, _ = result
        token = await store.create(user)
    except Exception:
        logger.exception("login_error", username=request.username)
        return PlainTextResponse(
            "Error logging in",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    logger.info("user_logged_in", username=user.username, is_admin=user.is_admin)

    target = "/admin" if user.is_admin else "/users"
    response = RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_ttl,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return response


@router.post("/logout")
async def logout(
    token: Optional[str] = Depends(get_session_token),
    store: SessionStore = Depends(get_session_store),
) -> RedirectResponse:
    """Destroy the current session, if any, and return to the landing page."""
    if token:
        await store.destroy(token)
        logger.info("user_logged_out")

    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(get_settings().session_cookie_name)
    return response
