"""
Client-side marker state.

Two partitions, never merged in storage:
- drafts:    client-only markers (uuid ids), invisible to the server
- confirmed: the last server snapshot plus acknowledged writes (server ids)

The read view is drafts followed by confirmed. Reconciliation replaces the
confirmed partition in one swap and never touches drafts, so a snapshot that
lands while a draft is being confirmed cannot evict it.

Remote calls run outside the lock; every local mutation is one critical section.
"""
import threading
from typing import Any, Dict, Iterable, List, Optional

from ..adapters import MarkerApi
from ..core.errors import NotFoundError, ValidationError
from ..core.models import Marker, Origin, Position, new_draft
from ..utils.log import log_line
from .validate import (
    validate_comment_append,
    validate_location,
    validate_position,
    validate_update_fields,
)


class MarkerStore:
    def __init__(self, api: MarkerApi):
        self.api = api
        self._lock = threading.Lock()
        self._drafts: Dict[str, Marker] = {}
        self._confirmed: Dict[str, Marker] = {}
        self._intents: Dict[str, str] = {}  # intent_id -> draft id

    # ---------- read view ----------

    def markers(self) -> List[Marker]:
        with self._lock:
            return list(self._drafts.values()) + list(self._confirmed.values())

    def drafts(self) -> List[Marker]:
        with self._lock:
            return list(self._drafts.values())

    def confirmed(self) -> List[Marker]:
        with self._lock:
            return list(self._confirmed.values())

    def get(self, marker_id: str) -> Optional[Marker]:
        with self._lock:
            return self._drafts.get(marker_id) or self._confirmed.get(marker_id)

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._drafts) + len(self._confirmed)

    @property
    def draft_count(self) -> int:
        return len(self._drafts)

    @property
    def confirmed_count(self) -> int:
        return len(self._confirmed)

    def search(self, keyword: str) -> Optional[Marker]:
        """First marker whose location contains keyword (case-insensitive), drafts first."""
        needle = (keyword or "").strip().lower()
        if not needle:
            raise ValidationError("search keyword must not be empty")
        for m in self.markers():
            if m.location and needle in m.location.lower():
                return m
        return None

    # ---------- draft intents (local only) ----------

    def add_draft(self, position: Position, intent_id: Optional[str] = None) -> Marker:
        """
        Create a draft at position. No remote call.
        Repeating the same intent_id returns the draft it created instead of a new one.
        """
        pos = validate_position(position)
        with self._lock:
            if intent_id is not None:
                existing = self._drafts.get(self._intents.get(intent_id, ""))
                if existing is not None:
                    return existing
            marker = new_draft(pos)
            self._drafts[marker.id] = marker
            if intent_id is not None:
                self._intents[intent_id] = marker.id
        return marker

    def move_draft(self, marker_id: str, position: Position) -> Marker:
        pos = validate_position(position)
        with self._lock:
            draft = self._drafts.get(marker_id)
            if draft is None:
                if marker_id in self._confirmed:
                    raise ValidationError("position of a confirmed marker cannot be changed")
                raise NotFoundError(marker_id)
            moved = draft.with_changes(position=pos)
            self._drafts[marker_id] = moved
        return moved

    def edit_draft(self, marker_id: str, location: Optional[str] = None, problem: Optional[bool] = None) -> Marker:
        """Form edits on a draft. A blank location is allowed here; confirm() checks it."""
        changes: Dict[str, Any] = {}
        if location is not None:
            if not isinstance(location, str):
                raise ValidationError("location must be a string")
            changes["location"] = location
        if problem is not None:
            changes["problem"] = bool(problem)
        with self._lock:
            draft = self._drafts.get(marker_id)
            if draft is None:
                raise NotFoundError(marker_id, "Draft not found")
            edited = draft.with_changes(**changes)
            self._drafts[marker_id] = edited
        return edited

    # ---------- confirmation / updates (remote) ----------

    def set_flag(self, marker_id: str, problem: bool) -> Marker:
        """
        Toggle the problem flag.
        Drafts: local only (sent on confirm).
        Confirmed: applied locally first, then sent; rolled back if the call fails.
        """
        problem = bool(problem)
        with self._lock:
            draft = self._drafts.get(marker_id)
            if draft is not None:
                flagged = draft.with_changes(problem=problem)
                self._drafts[marker_id] = flagged
                return flagged
            before = self._confirmed.get(marker_id)
            if before is None:
                raise NotFoundError(marker_id)
            optimistic = before.with_changes(problem=problem)
            self._confirmed[marker_id] = optimistic

        try:
            saved = self.api.update_marker(marker_id, {"problem": problem})
        except Exception:
            with self._lock:
                # only undo our own write; a newer snapshot wins
                if self._confirmed.get(marker_id) is optimistic:
                    self._confirmed[marker_id] = before
            raise

        with self._lock:
            if marker_id in self._confirmed:
                self._confirmed[marker_id] = saved
        return saved

    def confirm(self, marker_id: str, location: str, problem: bool = False) -> Marker:
        """
        Submit a draft to the server.
        On success the draft is dropped, the server's marker (new id) joins the
        confirmed partition and a refresh is run. On failure the draft is kept as is.
        """
        with self._lock:
            draft = self._drafts.get(marker_id)
        if draft is None:
            raise NotFoundError(marker_id, "Draft not found")
        validate_location(location)

        saved = self.api.create_marker(draft.position, location, list(draft.comments), bool(problem))
        if saved.origin is not Origin.CONFIRMED:
            saved = saved.with_changes(origin=Origin.CONFIRMED)

        with self._lock:
            self._drafts.pop(marker_id, None)
            self._intents = {k: v for k, v in self._intents.items() if v != marker_id}
            self._confirmed[saved.id] = saved
        log_line(f"CONFIRM | draft={marker_id} -> id={saved.id} | location={location!r}")

        try:
            self.refresh()
        except Exception as e:
            # the create itself succeeded; the next poll will reconcile
            log_line(f"WARN | refresh after confirm failed | id={saved.id} | err={e!r}")
        return saved

    def update_confirmed(self, marker_id: str, fields: Dict[str, Any]) -> Marker:
        """
        Send only the fields that differ from the local copy.
        The confirmed entry is replaced by the server's answer once it arrives.
        """
        fields = validate_update_fields(fields)
        with self._lock:
            current = self._confirmed.get(marker_id)
        if current is None:
            if marker_id in self._drafts:
                raise ValidationError("draft markers must be confirmed before updating")
            raise NotFoundError(marker_id)

        if "comments" in fields:
            fields["comments"] = validate_comment_append(current.comments, fields["comments"])

        changed = {k: v for k, v in fields.items() if getattr(current, k) != v}
        if not changed:
            return current
        if "comments" in changed:
            changed["comments"] = list(changed["comments"])

        saved = self.api.update_marker(marker_id, changed)

        with self._lock:
            if marker_id in self._confirmed:
                self._confirmed[marker_id] = saved
        return saved

    def add_comment(self, marker_id: str, text: str) -> Marker:
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("comment must not be empty")
        with self._lock:
            current = self._confirmed.get(marker_id)
        if current is None:
            if marker_id in self._drafts:
                raise ValidationError("draft markers must be confirmed before commenting")
            raise NotFoundError(marker_id)
        return self.update_confirmed(marker_id, {"comments": [*current.comments, text]})

    def remove(self, marker_id: str) -> None:
        """
        Drafts are dropped locally. Confirmed markers are deleted on the server
        (which archives them). "Already gone" counts as success, locally as well
        as on the server, so removing twice is a no-op.
        """
        with self._lock:
            if self._drafts.pop(marker_id, None) is not None:
                self._intents = {k: v for k, v in self._intents.items() if v != marker_id}
                return
            if marker_id not in self._confirmed:
                log_line(f"REMOVE | id={marker_id} not present, nothing to do")
                return

        try:
            self.api.delete_marker(marker_id)
        except NotFoundError:
            log_line(f"REMOVE | id={marker_id} already gone on server")

        with self._lock:
            self._confirmed.pop(marker_id, None)

    # ---------- reconciliation ----------

    def reconcile(self, snapshot: Iterable[Marker]) -> None:
        """Replace the confirmed partition with snapshot. Drafts are left alone."""
        fresh: Dict[str, Marker] = {}
        for m in snapshot:
            if m.origin is not Origin.CONFIRMED:
                raise ValidationError(f"snapshot contains a non-confirmed marker: {m.id}")
            fresh[m.id] = m
        with self._lock:
            self._confirmed = fresh

    def refresh(self) -> List[Marker]:
        snapshot = self.api.list_markers()
        self.reconcile(snapshot)
        return snapshot
