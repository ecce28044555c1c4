from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from permscope.catalog.types import Role
from permscope.errors import UnknownUser
from permscope.store.grants import GrantStore

from .context import AuthorizationContext

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer"


def extract_session_token(request: Request) -> str | None:
    """
    Extract the session token from ``Authorization: Bearer <token>``.

    Returns None when the header is absent; a malformed header is a 400.
    """

    raw = request.headers.get(AUTHORIZATION_HEADER)
    if not raw:
        logger.info("Missing Authorization header path=%s method=%s", request.url.path, request.method)
        return None

    prefix = f"{BEARER_PREFIX} "
    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {AUTHORIZATION_HEADER}. Expected '{BEARER_PREFIX} <token>'.",
        )

    token = raw[len(prefix) :].strip()
    if not token:
        logger.warning("Empty bearer token path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {AUTHORIZATION_HEADER}. Missing token after '{BEARER_PREFIX}'.",
        )
    return token


def build_context(store: GrantStore, user_id: int) -> AuthorizationContext:
    """
    Build an AuthorizationContext from the user's grant rows.

    Store failures propagate (``StoreUnavailable``); there is no fallback
    context. An unknown or inactive user raises ``UnknownUser``.
    """

    grants = store.get_user_grants(user_id)
    if grants is None:
        raise UnknownUser(user_id)

    role = Role.parse(grants.role)
    if role is None:
        logger.warning("User has unrecognised role user_id=%s role=%r", user_id, grants.role)

    return AuthorizationContext(
        user_id=grants.user_id,
        role=role if role is not None else grants.role,
        department_id=grants.department_id,
        granted_permissions=grants.permissions,
        granted_menus=grants.menus,
        display_name=grants.display_name,
    )
