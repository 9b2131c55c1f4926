# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from membership.errors import DuplicateEmailError
from membership.infra.document_store import Document, DocumentCollection, DuplicateKeyError

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


@dataclass(frozen=True)
class UserRecord:
    id: str
    name: str
    email: str
    password_hash: str
    user_type: str = ROLE_USER
    created_at: str = ""

    @property
    def is_admin(self) -> bool:
        return self.user_type == ROLE_ADMIN

    @classmethod
    def from_document(cls, doc: Document) -> "UserRecord":
        role = str(doc.get("user_type") or ROLE_USER).strip().lower()
        return cls(
            id=str(doc["id"]),
            name=str(doc.get("name") or "").strip(),
            email=normalize_email(str(doc.get("email") or "")),
            password_hash=str(doc.get("password_hash") or "").strip(),
            user_type=role if role in ROLES else ROLE_USER,
            created_at=str(doc.get("created_at") or ""),
        )


class UserStore:
    """User records addressed by opaque id and by (unique) email."""

    def __init__(self, collection: DocumentCollection) -> None:
        self.collection = collection

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        e = normalize_email(email)
        if not e:
            return None
        doc = self.collection.find_one(email=e)
        return UserRecord.from_document(doc) if doc else None

    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        u = (user_id or "").strip()
        if not u:
            return None
        doc = self.collection.get(u)
        return UserRecord.from_document(doc) if doc else None

    def create(self, *, name: str, email: str, password_hash: str, user_type: str = ROLE_USER) -> UserRecord:
        if user_type not in ROLES:
            raise ValueError(f"Unknown role '{user_type}'")
        doc = {
            "id": uuid.uuid4().hex,
            "name": name.strip(),
            "email": normalize_email(email),
            "password_hash": password_hash,
            "user_type": user_type,
            "created_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }
        try:
            stored = self.collection.insert(doc, unique=("email",))
        except DuplicateKeyError as exc:
            raise DuplicateEmailError() from exc
        logger.info("Created user %s (%s)", stored["id"], user_type)
        return UserRecord.from_document(stored)

    def update_role(self, user_id: str, user_type: str) -> bool:
        if user_type not in ROLES:
            raise ValueError(f"Unknown role '{user_type}'")
        return self.collection.update(user_id, {"user_type": user_type})

    def update_password_hash(self, user_id: str, password_hash: str) -> bool:
        return self.collection.update(user_id, {"password_hash": password_hash})

    def list_all(self) -> List[UserRecord]:
        users = [UserRecord.from_document(d) for d in self.collection.find()]
        return sorted(users, key=lambda u: (u.created_at, u.email))

    def delete(self, user_id: str) -> bool:
        return self.collection.delete(user_id)
