# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication core.

This package provides:
- Password hashing/verification (argon2)
- Signup/login payload validation (pydantic)
- The user credential store
- Server-side sessions behind signed cookie tokens (itsdangerous)
"""
