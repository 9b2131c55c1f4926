# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Small YAML-backed document collections.

Each collection is one YAML file of the form::

    version: 1
    documents:
      <id>: {field: value, ...}

Reads are cached by file mtime; every write rewrites the whole file atomically
(temp file + os.replace) under a per-collection lock. A collection created
without a path lives only in memory.
"""

from __future__ import annotations

import copy
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import yaml

from membership.errors import StoreError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

FORMAT_VERSION = 1


class DuplicateKeyError(Exception):
    def __init__(self, field: str, value: Any) -> None:
        super().__init__(f"Duplicate value for '{field}'")
        self.field = field
        self.value = value


class DocumentCollection:
    def __init__(self, name: str, path: Optional[Path] = None) -> None:
        self.name = name
        self.path = Path(path).resolve() if path is not None else None
        self._lock = threading.RLock()
        self._docs: Dict[str, Document] = {}
        self._mtime = 0.0

    # ------------------ persistence ------------------

    def _read_file(self) -> Dict[str, Document]:
        assert self.path is not None
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise StoreError(f"Cannot read collection '{self.name}'") from exc
        docs = (raw.get("documents") or {}) if isinstance(raw, dict) else {}
        out: Dict[str, Document] = {}
        for doc_id, doc in docs.items():
            if not isinstance(doc, dict):
                continue
            doc = dict(doc)
            doc["id"] = str(doc_id)
            out[str(doc_id)] = doc
        return out

    def _refresh(self) -> None:
        if self.path is None:
            return
        try:
            mtime = self.path.stat().st_mtime if self.path.exists() else 0.0
        except OSError as exc:
            raise StoreError(f"Cannot stat collection '{self.name}'") from exc
        if not mtime:
            self._docs, self._mtime = {}, 0.0
            return
        if mtime == self._mtime:
            return
        self._docs = self._read_file()
        self._mtime = mtime

    def _flush(self) -> None:
        if self.path is None:
            return
        payload = {
            "version": FORMAT_VERSION,
            "documents": {
                doc_id: {k: v for k, v in doc.items() if k != "id"}
                for doc_id, doc in self._docs.items()
            },
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    yaml.safe_dump(payload, fh, sort_keys=False, allow_unicode=True)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
            self._mtime = self.path.stat().st_mtime
        except (OSError, yaml.YAMLError) as exc:
            logger.exception("Write to collection %s failed", self.name)
            raise StoreError(f"Cannot write collection '{self.name}'") from exc

    # ------------------ queries ------------------

    def get(self, doc_id: str) -> Optional[Document]:
        with self._lock:
            self._refresh()
            doc = self._docs.get(str(doc_id or ""))
            return copy.deepcopy(doc) if doc is not None else None

    def find(self, predicate: Optional[Callable[[Document], bool]] = None) -> List[Document]:
        with self._lock:
            self._refresh()
            docs: Iterable[Document] = self._docs.values()
            if predicate is not None:
                docs = [d for d in docs if predicate(d)]
            return [copy.deepcopy(d) for d in docs]

    def find_one(self, **fields: Any) -> Optional[Document]:
        hits = self.find(lambda d: all(d.get(k) == v for k, v in fields.items()))
        return hits[0] if hits else None

    def count(self) -> int:
        with self._lock:
            self._refresh()
            return len(self._docs)

    # ------------------ mutations ------------------

    def insert(self, doc: Document, *, unique: Iterable[str] = ()) -> Document:
        """Insert `doc` keyed by its `id`; `unique` fields are checked under the lock."""
        doc_id = str(doc.get("id") or "").strip()
        if not doc_id:
            raise ValueError("Document needs an 'id'")
        with self._lock:
            self._refresh()
            if doc_id in self._docs:
                raise DuplicateKeyError("id", doc_id)
            for field in unique:
                value = doc.get(field)
                if any(d.get(field) == value for d in self._docs.values()):
                    raise DuplicateKeyError(field, value)
            stored = copy.deepcopy(doc)
            stored["id"] = doc_id
            self._docs[doc_id] = stored
            try:
                self._flush()
            except StoreError:
                self._docs.pop(doc_id, None)
                raise
            return copy.deepcopy(stored)

    def update(self, doc_id: str, fields: Document) -> bool:
        with self._lock:
            self._refresh()
            current = self._docs.get(str(doc_id or ""))
            if current is None:
                return False
            before = copy.deepcopy(current)
            current.update({k: v for k, v in fields.items() if k != "id"})
            try:
                self._flush()
            except StoreError:
                self._docs[before["id"]] = before
                raise
            return True

    def delete(self, doc_id: str) -> bool:
        return self.delete_many(lambda d: d["id"] == str(doc_id or "")) > 0

    def delete_many(self, predicate: Callable[[Document], bool]) -> int:
        with self._lock:
            self._refresh()
            doomed = [doc_id for doc_id, d in self._docs.items() if predicate(d)]
            if not doomed:
                return 0
            removed = {doc_id: self._docs.pop(doc_id) for doc_id in doomed}
            try:
                self._flush()
            except StoreError:
                self._docs.update(removed)
                raise
            return len(removed)
