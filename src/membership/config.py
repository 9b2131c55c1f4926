# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_SECRET = "change-me"


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    secret_key: str = DEFAULT_SECRET
    data_dir: Path = Path("data")
    cookie_name: str = "membership_session"
    session_max_age: int = 3600  # 1 hour
    cookie_secure: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            env=os.getenv("MEMBERSHIP_ENV", "development"),
            secret_key=os.getenv("MEMBERSHIP_SECRET_KEY", DEFAULT_SECRET),
            data_dir=Path(os.getenv("MEMBERSHIP_DATA_DIR", "data")).resolve(),
            cookie_name=os.getenv("MEMBERSHIP_COOKIE_NAME", "membership_session"),
            session_max_age=int(os.getenv("MEMBERSHIP_SESSION_MAX_AGE", "3600")),
            cookie_secure=_get_bool(os.getenv("MEMBERSHIP_COOKIE_SECURE"), default=False),
            host=os.getenv("MEMBERSHIP_HOST", "0.0.0.0"),
            port=int(os.getenv("MEMBERSHIP_PORT", "8000")),
            reload=_get_bool(os.getenv("MEMBERSHIP_RELOAD"), default=False),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @property
    def users_path(self) -> Path:
        return self.data_dir / "users.yml"

    @property
    def sessions_path(self) -> Path:
        return self.data_dir / "sessions.yml"


def validate_runtime_config(settings: Settings) -> None:
    if settings.env.lower() == "production" and settings.secret_key == DEFAULT_SECRET:
        raise RuntimeError("MEMBERSHIP_SECRET_KEY must be set in production.")
    if settings.session_max_age <= 0:
        raise RuntimeError("MEMBERSHIP_SESSION_MAX_AGE must be positive.")
