# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Signup, login, logout and role changes.

Route handlers call these and translate the raised `MembershipError`s into
re-rendered forms, redirects or error pages.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Tuple

from membership.auth.passwords import dummy_hash, hash_password, needs_rehash, verify_password
from membership.auth.session import SessionManager
from membership.auth.users import ROLE_ADMIN, ROLE_USER, UserRecord, UserStore
from membership.auth.validation import echo_fields, validate_login, validate_signup
from membership.errors import (
    AuthenticationError,
    DuplicateEmailError,
    NotFoundError,
    StoreError,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    def __init__(self, users: UserStore, sessions: SessionManager) -> None:
        self.users = users
        self.sessions = sessions

    def _start_session(self, user: UserRecord) -> str:
        return self.sessions.create(user.id, user.name, user.user_type)

    def signup(self, payload: Mapping[str, Any]) -> Tuple[UserRecord, str]:
        form = validate_signup(payload)
        password_hash = hash_password(form.password)
        try:
            user = self.users.create(name=form.name, email=form.email, password_hash=password_hash)
        except DuplicateEmailError as exc:
            raise DuplicateEmailError(fields=echo_fields(payload)) from exc
        token = self._start_session(user)
        logger.info("Signup: user %s", user.id)
        return user, token

    def login(self, payload: Mapping[str, Any]) -> Tuple[UserRecord, str]:
        form = validate_login(payload)
        user = self.users.find_by_email(form.email)
        # unknown accounts still pay for one argon2 verify
        stored_hash = user.password_hash if user is not None else dummy_hash()
        if not verify_password(stored_hash, form.password) or user is None:
            logger.info("Failed login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if needs_rehash(user.password_hash):
            self.users.update_password_hash(user.id, hash_password(form.password))

        token = self._start_session(user)
        logger.info("Login: user %s", user.id)
        return user, token

    def logout(self, token: str) -> None:
        try:
            self.sessions.destroy(token)
        except StoreError:
            logger.exception("Could not destroy session on logout")
            return
        logger.info("Logout")

    def set_role(self, user_id: str, user_type: str) -> UserRecord:
        if not self.users.update_role(user_id, user_type):
            raise NotFoundError("No such user")
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("No such user")
        logger.info("User %s is now %s", user.id, user.user_type)
        return user

    def promote(self, user_id: str) -> UserRecord:
        return self.set_role(user_id, ROLE_ADMIN)

    def demote(self, user_id: str) -> UserRecord:
        return self.set_role(user_id, ROLE_USER)
