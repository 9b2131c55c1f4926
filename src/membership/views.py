# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Typed template contexts, one per page."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from membership.auth.session import SessionData
from membership.auth.users import UserRecord


@dataclass
class PageContext:
    title: str = "Membership"
    authenticated: bool = False
    user_type: str = ""
    name: str = ""

    def with_session(self, session: Optional[SessionData]):
        if session is not None and session.authenticated:
            self.authenticated = True
            self.user_type = session.user_type
            self.name = session.name
        return self

    def as_context(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class IndexPage(PageContext):
    title: str = "Home"


@dataclass
class SignupPage(PageContext):
    title: str = "Sign up"
    error: str = ""
    form_name: str = ""
    form_email: str = ""


@dataclass
class LoginPage(PageContext):
    title: str = "Log in"
    error: str = ""
    form_email: str = ""


@dataclass
class MembersPage(PageContext):
    title: str = "Members"
    image: str = ""


@dataclass
class AdminUserRow:
    id: str
    name: str
    email: str
    user_type: str
    is_self: bool = False

    @classmethod
    def from_user(cls, user: UserRecord, *, current_user_id: str = "") -> "AdminUserRow":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            user_type=user.user_type,
            is_self=(user.id == current_user_id),
        )


@dataclass
class AdminPage(PageContext):
    title: str = "Admin"
    users: List[AdminUserRow] = field(default_factory=list)


@dataclass
class ErrorPage(PageContext):
    title: str = "Error"
    message: str = ""
