"""FastAPI dependencies for sessions, access control and form or JSON request bodies."""

import json
from typing import Callable, Optional, TypeVar

from fastapi import Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from messenger.config import get_settings
from messenger.models.user import User
from messenger.services.session_store import SessionStore


class LoginRequired(Exception):
    """No session for the request; answered with a redirect to the landing page."""


def get_session_store(request: Request) -> SessionStore:
    """Return the session store created in the application lifespan."""
    return request.app.state.session_store


def get_session_token(request: Request) -> Optional[str]:
    """Return the session token from the request cookie, if any."""
    return request.cookies.get(get_settings().session_cookie_name)


async def get_optional_user(
    token: Optional[str] = Depends(get_session_token),
    store: SessionStore = Depends(get_session_store),
) -> Optional[User]:
    """Return the session's user snapshot, or None when not logged in.

    The user store is never consulted; the snapshot taken at login is trusted.
    """
    if not token:
        return None
    return await store.get(token)


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    """Require a logged-in user.

    Raises:
        LoginRequired: If there is no session
    """
    if user is None:
        raise LoginRequired()
    return user


async def require_admin(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    """Require a logged-in admin.

    Raises:
        HTTPException 403: If there is no session or the user is not an admin
    """
    if user is None or not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    return user


ModelT = TypeVar("ModelT", bound=BaseModel)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def form_or_json(model: type[ModelT]) -> Callable:
    """Build a dependency that reads ``model`` from an HTML form post or a JSON body.

    Browsers submit the login, register, send and verify forms as
    ``application/x-www-form-urlencoded``; API clients may send JSON instead.
    Missing fields are reported through the usual 400 validation handler.
    """

    async def parse(request: Request) -> ModelT:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(FORM_CONTENT_TYPES):
            data = dict(await request.form())
        else:
            try:
                data = await request.json()
            except json.JSONDecodeError:
                raise RequestValidationError(
                    [{"type": "json_invalid", "loc": ("body",), "msg": "Body must be a form or a JSON object"}]
                )

        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise RequestValidationError(
                [{**error, "loc": ("body", *error["loc"])} for error in e.errors()]
            )

    return parse
