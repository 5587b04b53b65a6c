"""
Server-side marker operations.

Deletes are never destructive: the live document is copied into the trash
collection first, and only removed once that copy is stored. If the archive
write fails nothing is deleted and ArchiveWriteFailure is raised.
"""
from typing import Any, Dict, List

from ..core.constants import UPDATABLE_FIELDS
from ..core.errors import ArchiveWriteFailure, NotFoundError, ValidationError
from ..core.models import ArchiveRecord
from ..domain.validate import validate_comments, validate_position
from ..utils.log import log_line
from .storage import Doc, JsonCollection

# Fields the server accepts from a request body (unknown keys are dropped)
ACCEPTED_FIELDS = ("position",) + UPDATABLE_FIELDS


def _clean_body(body: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise ValidationError("request body must be a JSON object")

    out = {k: body[k] for k in ACCEPTED_FIELDS if k in body}
    if "position" in out:
        out["position"] = list(validate_position(out["position"]))
    if "problem" in out:
        if not isinstance(out["problem"], bool):
            raise ValidationError("problem must be true or false")
    if "comments" in out:
        out["comments"] = list(validate_comments(out["comments"]))
    for key in ("location", "photo", "status"):
        if key in out and out[key] is not None and not isinstance(out[key], str):
            raise ValidationError(f"{key} must be a string")
    return out


class MarkerService:
    def __init__(self, markers: JsonCollection, trash: JsonCollection):
        self.markers = markers
        self.trash = trash

    # ---------- reads ----------

    def list_markers(self) -> List[Doc]:
        return self.markers.find()

    def get_marker(self, marker_id: str) -> Doc:
        doc = self.markers.find_by_id(marker_id)
        if doc is None:
            raise NotFoundError(marker_id)
        return doc

    def list_archive(self) -> List[Doc]:
        return self.trash.find()

    # ---------- create / update ----------

    def create_marker(self, body: Dict[str, Any]) -> Doc:
        fields = _clean_body(body)
        if "position" not in fields:
            raise ValidationError("position is required")
        fields.setdefault("problem", False)
        fields.setdefault("comments", [])
        doc = self.markers.insert(fields)
        log_line(f"CREATE | id={doc['_id']} | location={doc.get('location')!r}")
        return doc

    def update_marker(self, marker_id: str, body: Dict[str, Any]) -> Doc:
        fields = _clean_body(body)
        doc = self.markers.update_by_id(marker_id, fields)
        if doc is None:
            raise NotFoundError(marker_id)
        log_line(f"UPDATE | id={marker_id} | fields={','.join(sorted(fields)) or '-'}")
        return doc

    # ---------- archival deletes ----------

    def delete_marker(self, marker_id: str) -> ArchiveRecord:
        """
        1. find live doc (NotFoundError if absent)
        2. build archive record (all fields but _id, original timestamps)
        3. insert into trash
        4. delete live doc (the copy is withdrawn if this step fails)
        """
        doc = self.markers.find_by_id(marker_id)
        if doc is None:
            raise NotFoundError(marker_id)

        record = ArchiveRecord.from_doc(doc)
        try:
            archived = self.trash.insert(record.to_doc())
        except Exception as e:
            log_line(f"ERROR | archive write failed | id={marker_id} | err={e!r}")
            raise ArchiveWriteFailure(f"could not archive marker {marker_id}") from e

        try:
            removed = self.markers.delete_by_id(marker_id)
        except Exception as e:
            # live doc is still there; withdraw the copy so a retry archives it once
            log_line(f"ERROR | delete failed after archiving | id={marker_id} | err={e!r}")
            self._withdraw_archive([archived["_id"]])
            raise

        if not removed:
            # a concurrent delete got there between find and delete; the copy is kept
            log_line(f"WARN | DELETE | id={marker_id} vanished after archiving")
        else:
            log_line(f"DELETE | id={marker_id} archived to {self.trash.name}")
        return record

    def _withdraw_archive(self, archive_ids: List[str]) -> None:
        try:
            self.trash.delete_many(archive_ids)
        except Exception as e:
            log_line(f"ERROR | could not withdraw archive copies | ids={','.join(archive_ids)} | err={e!r}")

    def delete_all_markers(self) -> int:
        """
        Archive the whole live set as one batch, then delete exactly those documents.
        Returns the number of archived markers (0 = nothing to do).
        """
        docs = self.markers.find()
        if not docs:
            return 0

        batch = [ArchiveRecord.from_doc(d).to_doc() for d in docs]
        try:
            archived = self.trash.insert_many(batch)
        except Exception as e:
            log_line(f"ERROR | bulk archive write failed | count={len(batch)} | err={e!r}")
            raise ArchiveWriteFailure(f"could not archive {len(batch)} markers") from e

        try:
            removed = self.markers.delete_many([d["_id"] for d in docs])
        except Exception as e:
            log_line(f"ERROR | bulk delete failed after archiving | count={len(batch)} | err={e!r}")
            self._withdraw_archive([r["_id"] for r in archived])
            raise
        log_line(f"DELETE ALL | archived={len(batch)} removed={removed}")
        return len(batch)
