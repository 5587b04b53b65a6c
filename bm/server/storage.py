"""
Document collections persisted as JSON files.

Each collection is a list of dicts with a string "_id". The whole file is
rewritten with an atomic save_json on every write; if the write fails the
in-memory copy is left as it was, so memory and disk never diverge.
"""
import copy
import secrets
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..utils.files import load_json, save_json
from ..utils.time import now_utc_iso

Doc = Dict[str, Any]


def new_object_id() -> str:
    """24 hex chars, same shape as a MongoDB ObjectId."""
    return secrets.token_hex(12)


class JsonCollection:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self._lock = threading.Lock()
        self._docs: List[Doc] = []
        if self.path is not None:
            data = load_json(self.path, None)
            if data is None and self.path.exists():
                # refuse to start over an unreadable file; the next write would erase it
                raise ValueError(f"{self.path} is not valid JSON")
            if data is None:
                data = []
            if not isinstance(data, list):
                raise ValueError(f"{self.path} does not hold a JSON list")
            self._docs = data

    @property
    def name(self) -> str:
        return self.path.name if self.path is not None else "memory"

    def __len__(self) -> int:
        return len(self._docs)

    def _commit(self, docs: List[Doc]) -> None:
        if self.path is not None:
            save_json(self.path, docs)
        self._docs = docs

    def _stamp(self, doc: Doc, now: str) -> Doc:
        out = copy.deepcopy(doc)
        out["_id"] = new_object_id()
        out.setdefault("createdAt", now)
        out.setdefault("updatedAt", now)
        if out["createdAt"] is None:
            out["createdAt"] = now
        if out["updatedAt"] is None:
            out["updatedAt"] = now
        return out

    # ---------- reads ----------

    def find(self) -> List[Doc]:
        with self._lock:
            return copy.deepcopy(self._docs)

    def find_by_id(self, doc_id: str) -> Optional[Doc]:
        with self._lock:
            for d in self._docs:
                if d.get("_id") == doc_id:
                    return copy.deepcopy(d)
        return None

    # ---------- writes ----------

    def insert(self, doc: Doc) -> Doc:
        """Insert one document. Timestamps already present on doc are kept."""
        with self._lock:
            stored = self._stamp(doc, now_utc_iso())
            self._commit(self._docs + [stored])
            return copy.deepcopy(stored)

    def insert_many(self, docs: Iterable[Doc]) -> List[Doc]:
        """All-or-nothing: the batch is written in a single save."""
        with self._lock:
            now = now_utc_iso()
            stored = [self._stamp(d, now) for d in docs]
            self._commit(self._docs + stored)
            return copy.deepcopy(stored)

    def update_by_id(self, doc_id: str, fields: Doc) -> Optional[Doc]:
        """Apply fields to the document and refresh updatedAt. None if not found."""
        with self._lock:
            docs = list(self._docs)
            for i, d in enumerate(docs):
                if d.get("_id") != doc_id:
                    continue
                updated = copy.deepcopy(d)
                updated.update(copy.deepcopy(fields))
                updated["_id"] = doc_id
                updated["updatedAt"] = now_utc_iso()
                docs[i] = updated
                self._commit(docs)
                return copy.deepcopy(updated)
        return None

    def delete_by_id(self, doc_id: str) -> bool:
        with self._lock:
            docs = [d for d in self._docs if d.get("_id") != doc_id]
            if len(docs) == len(self._docs):
                return False
            self._commit(docs)
            return True

    def delete_many(self, doc_ids: Optional[Iterable[str]] = None) -> int:
        """Delete the given ids, or everything when doc_ids is None. Returns the count."""
        with self._lock:
            if doc_ids is None:
                docs: List[Doc] = []
            else:
                ids = set(doc_ids)
                docs = [d for d in self._docs if d.get("_id") not in ids]
            removed = len(self._docs) - len(docs)
            if removed:
                self._commit(docs)
            return removed
