# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the package logger (idempotent)."""
    root = logging.getLogger("membership")
    root.setLevel(level.upper())
    if any(getattr(h, "_membership", False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._membership = True  # type: ignore[attr-defined]
    root.addHandler(handler)
