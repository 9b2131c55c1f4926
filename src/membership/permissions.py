# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from fastapi import HTTPException, Request

from membership.auth.session import SessionData, SessionManager
from membership.auth.users import UserStore
from membership.config import Settings
from membership.errors import AuthorizationError

logger = logging.getLogger(__name__)

LANDING_URL = "/"


class AccessState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    AUTHENTICATED_ADMIN = "authenticated_admin"


def access_state(session: Optional[SessionData]) -> AccessState:
    if session is None or not session.authenticated:
        return AccessState.ANONYMOUS
    if session.is_admin:
        return AccessState.AUTHENTICATED_ADMIN
    return AccessState.AUTHENTICATED


def load_session_from_request(
    request: Request,
    sessions: SessionManager,
    users: UserStore,
    cookie_name: str,
) -> Optional[SessionData]:
    """Resolve the request cookie to a live session.

    Sets `request.state.clear_session_cookie` when the client holds a token that
    no longer maps to a usable session, so the response can drop the cookie.
    """
    token = request.cookies.get(cookie_name, "")
    if not token:
        return None
    sess = sessions.resolve(token)
    if sess is None or not sess.authenticated:
        request.state.clear_session_cookie = True
        return None
    if users.find_by_id(sess.user_id) is None:
        logger.warning("Session %s… references missing user %s; invalidating", sess.id[:8], sess.user_id)
        sessions.destroy_id(sess.id)
        request.state.clear_session_cookie = True
        return None
    return sess


def current_session_optional(request: Request) -> Optional[SessionData]:
    return getattr(request.state, "session", None)


def require_user(request: Request) -> SessionData:
    sess = current_session_optional(request)
    if access_state(sess) is not AccessState.ANONYMOUS:
        return sess
    raise HTTPException(status_code=302, headers={"Location": LANDING_URL})


def require_admin(request: Request) -> SessionData:
    sess = require_user(request)
    if access_state(sess) is not AccessState.AUTHENTICATED_ADMIN:
        raise AuthorizationError()
    return sess


def cookie_settings(settings: Settings) -> dict:
    return {
        "httponly": True,
        "samesite": "lax",
        "secure": settings.cookie_secure,
        "max_age": settings.session_max_age,
    }
