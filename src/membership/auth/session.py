# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Optional

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from membership.infra.document_store import DocumentCollection

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 3600  # 1 hour
DEFAULT_SALT = "membership.session.v1"


@dataclass(frozen=True)
class SessionData:
    id: str
    user_id: str
    name: str
    user_type: str
    authenticated: bool
    created_at: float
    expires_at: float

    @property
    def is_admin(self) -> bool:
        return self.authenticated and self.user_type == "admin"


class SessionManager:
    """Server-side sessions referenced by a signed, opaque cookie token.

    The cookie only carries a random session id signed with the secret; the
    session state lives in `collection`. Expiry is absolute (`created_at +
    max_age`) and checked lazily in `resolve`.
    """

    def __init__(
        self,
        collection: DocumentCollection,
        secret: str,
        *,
        max_age: int = DEFAULT_MAX_AGE_SECONDS,
        salt: str = DEFAULT_SALT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise RuntimeError("Session secret is missing")
        self.collection = collection
        self.max_age = int(max_age)
        self._serializer = URLSafeTimedSerializer(secret_key=secret, salt=salt)
        self._clock = clock

    def _session_id(self, token: str) -> Optional[str]:
        if not token:
            return None
        try:
            data = self._serializer.loads(token, max_age=self.max_age)
        except (BadSignature, BadTimeSignature):
            return None
        sid = str((data or {}).get("sid") or "").strip() if isinstance(data, dict) else ""
        return sid or None

    def create(self, user_id: str, name: str, user_type: str) -> str:
        now = self._clock()
        sid = secrets.token_urlsafe(32)
        self.collection.insert(
            {
                "id": sid,
                "user_id": user_id,
                "name": name,
                "user_type": user_type,
                "authenticated": True,
                "created_at": now,
                "expires_at": now + self.max_age,
            }
        )
        return self._serializer.dumps({"sid": sid})

    def resolve(self, token: str) -> Optional[SessionData]:
        sid = self._session_id(token)
        if not sid:
            return None
        doc = self.collection.get(sid)
        if not doc:
            return None
        if float(doc.get("expires_at") or 0) <= self._clock():
            self.collection.delete(sid)
            logger.info("Session for user %s expired", doc.get("user_id"))
            return None
        return SessionData(
            id=sid,
            user_id=str(doc.get("user_id") or ""),
            name=str(doc.get("name") or ""),
            user_type=str(doc.get("user_type") or "user"),
            authenticated=bool(doc.get("authenticated")),
            created_at=float(doc.get("created_at") or 0),
            expires_at=float(doc.get("expires_at") or 0),
        )

    def destroy(self, token: str) -> None:
        sid = self._session_id(token)
        if sid:
            self.collection.delete(sid)

    def destroy_id(self, session_id: str) -> None:
        self.collection.delete(session_id)

    def purge_expired(self) -> int:
        now = self._clock()
        removed = self.collection.delete_many(lambda d: float(d.get("expires_at") or 0) <= now)
        if removed:
            logger.info("Purged %d expired sessions", removed)
        return removed
