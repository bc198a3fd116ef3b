"""Minimal auth dependency.

Stub implementation that reads the user id from a bearer token of the form
``Bearer <user_id>``. Anonymous requests get a context without a user, which
is enough for the public share endpoint; every other route requires a user.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Query, status

from tripshare.app.config import Settings, get_settings
from tripshare.app.db.context import RequestContext


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_context(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
    locale: Annotated[str | None, Query()] = None,
) -> RequestContext:
    """Extract request context from the authorization header and locale.

    Args:
        settings: Application settings
        authorization: Authorization header (e.g., "Bearer 42")
        locale: Optional UI locale; unsupported values fall back to the default

    Returns:
        RequestContext with user_id (None when anonymous) and locale

    Raises:
        HTTPException: If the authorization header is malformed
    """
    resolved_locale = locale if locale in settings.supported_locales else settings.default_locale

    if not authorization:
        return RequestContext(user_id=None, locale=resolved_locale)

    if not authorization.startswith("Bearer "):
        raise _unauthorized("Invalid authorization header format")

    token = authorization[7:].strip()  # Strip "Bearer "

    try:
        user_id = int(token)
    except ValueError as e:
        raise _unauthorized("Invalid bearer token (expected a numeric user id)") from e

    if user_id <= 0:
        raise _unauthorized("Invalid bearer token (expected a positive user id)")

    return RequestContext(user_id=user_id, locale=resolved_locale)


def current_user_id(ctx: RequestContext) -> int:
    """Return the authenticated user id.

    Raises:
        HTTPException: 401 if the request is anonymous
    """
    if ctx.user_id is None:
        raise _unauthorized("Authentication required")
    return ctx.user_id


async def require_user(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
) -> RequestContext:
    """Dependency that rejects anonymous requests."""
    current_user_id(ctx)
    return ctx
