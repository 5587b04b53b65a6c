import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Dict, Any, Tuple

Position = Tuple[float, float]

class Origin(str, Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"

@dataclass(frozen=True)
class Marker:
    id: str
    position: Position
    location: str = ""
    problem: bool = False
    comments: Tuple[str, ...] = ()
    origin: Origin = Origin.DRAFT

    # passthrough fields from the server schema
    photo: Optional[str] = None
    status: Optional[str] = None

    # set by the persistence engine only
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def with_changes(self, **changes: Any) -> "Marker":
        return replace(self, **changes)

def new_draft_id() -> str:
    """128-bit random id for client-only drafts."""
    return uuid.uuid4().hex

def new_draft(position: Position) -> Marker:
    return Marker(id=new_draft_id(), position=position, origin=Origin.DRAFT)

def marker_from_doc(doc: Dict[str, Any]) -> Marker:
    """
    Map a wire/storage document to a confirmed Marker.
    Missing comments/problem default to [] / False.
    """
    pos = doc.get("position") or []
    if len(pos) != 2:
        raise ValueError(f"document {doc.get('_id')!r} has no [lat, lng] position")
    return Marker(
        id=str(doc["_id"]),
        position=(float(pos[0]), float(pos[1])),
        location=doc.get("location") or "",
        problem=bool(doc.get("problem") or False),
        comments=tuple(str(c) for c in (doc.get("comments") or [])),
        origin=Origin.CONFIRMED,
        photo=doc.get("photo"),
        status=doc.get("status"),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


@dataclass
class ArchiveRecord:
    """Copy of a live marker document taken right before it is deleted (no marker id)."""
    position: List[float]
    location: Optional[str] = None
    photo: Optional[str] = None
    status: Optional[str] = None
    problem: bool = False
    comments: List[str] = field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "ArchiveRecord":
        return cls(
            position=list(doc.get("position") or []),
            location=doc.get("location"),
            photo=doc.get("photo"),
            status=doc.get("status"),
            problem=bool(doc.get("problem") or False),
            comments=list(doc.get("comments") or []),
            created_at=doc.get("createdAt"),
            updated_at=doc.get("updatedAt"),
        )

    def to_doc(self) -> Dict[str, Any]:
        return {
            "position": list(self.position),
            "location": self.location,
            "photo": self.photo,
            "status": self.status,
            "problem": self.problem,
            "comments": list(self.comments),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
