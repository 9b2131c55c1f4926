# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy shared by the auth core and the HTTP layer."""

from __future__ import annotations

from http import HTTPStatus
from typing import Dict, Optional


class MembershipError(Exception):
    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MembershipError):
    """Bad payload shape, length or format.

    `fields` holds the submitted values that are safe to echo back into the form
    (never the password).
    """

    status = HTTPStatus.BAD_REQUEST
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, *, fields: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.fields = dict(fields or {})


class DuplicateEmailError(ValidationError):
    status = HTTPStatus.CONFLICT
    default_message = "Email is already registered"


class AuthenticationError(MembershipError):
    status = HTTPStatus.UNAUTHORIZED
    default_message = "Invalid email or password"


class AuthorizationError(MembershipError):
    status = HTTPStatus.FORBIDDEN
    default_message = "You are not allowed to view this page"


class NotFoundError(MembershipError):
    status = HTTPStatus.NOT_FOUND
    default_message = "Not found"


class StoreError(MembershipError):
    default_message = "Storage is unavailable"


class HashingError(MembershipError):
    default_message = "Could not process the password"
