# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Schemas for the signup and login forms.

`validate()` turns a raw form mapping into a typed model or raises
`membership.errors.ValidationError` with the first violation as a readable
message. Nothing here touches the store or the hasher.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Mapping, Type

import pydantic
from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator

from membership.errors import ValidationError

NAME_MAX = 50
PASSWORD_MIN = 8

# Fields that may be echoed back into a re-rendered form.
ECHO_FIELDS = ("name", "email")

LABELS = {"name": "Name", "email": "Email", "password": "Password"}


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class SignupForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=NAME_MAX)]
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class LoginForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


SCHEMAS: Dict[str, Type[BaseModel]] = {
    "signup": SignupForm,
    "login": LoginForm,
}


def echo_fields(payload: Mapping[str, Any]) -> Dict[str, str]:
    """Non-secret submitted values, as typed (trimmed), for re-rendering a form."""
    return {k: str(payload.get(k) or "").strip() for k in ECHO_FIELDS if k in payload}


def _first_message(exc: pydantic.ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    err = errors[0]
    field = str(err["loc"][0]) if err.get("loc") else ""
    label = LABELS.get(field, field.capitalize() or "Value")
    kind = err.get("type", "")
    ctx = err.get("ctx") or {}

    if kind == "missing":
        return f"{label} is required"
    if kind == "string_too_short":
        if ctx.get("min_length", 1) <= 1:
            return f"{label} is required"
        return f"{label} must be at least {ctx['min_length']} characters"
    if kind == "string_too_long":
        return f"{label} must be at most {ctx['max_length']} characters"
    if field == "email" and kind == "value_error":
        if not err.get("input"):
            return "Email is required"
        return "Email must be a valid email address"
    if kind == "string_type":
        return f"{label} must be text"
    if kind == "value_error" and "error" in ctx:
        return str(ctx["error"])
    return str(err.get("msg") or "Invalid input")


def validate(schema: str, payload: Mapping[str, Any]) -> BaseModel:
    model = SCHEMAS[schema]
    try:
        return model.model_validate(dict(payload))
    except pydantic.ValidationError as exc:
        raise ValidationError(_first_message(exc), fields=echo_fields(payload)) from exc


def validate_signup(payload: Mapping[str, Any]) -> SignupForm:
    return validate("signup", payload)  # type: ignore[return-value]


def validate_login(payload: Mapping[str, Any]) -> LoginForm:
    return validate("login", payload)  # type: ignore[return-value]
