from typing import Any, Dict, List, Sequence

from ..core.models import Marker, Position, marker_from_doc
from ..server.service import MarkerService


class LocalMarkerApi:
    """MarkerApi over an in-process MarkerService (no HTTP)."""

    def __init__(self, service: MarkerService):
        self.service = service

    def list_markers(self) -> List[Marker]:
        return [marker_from_doc(d) for d in self.service.list_markers()]

    def create_marker(self, position: Position, location: str, comments: Sequence[str], problem: bool) -> Marker:
        doc = self.service.create_marker({
            "position": [position[0], position[1]],
            "location": location,
            "comments": list(comments),
            "problem": bool(problem),
        })
        return marker_from_doc(doc)

    def update_marker(self, marker_id: str, fields: Dict[str, Any]) -> Marker:
        return marker_from_doc(self.service.update_marker(marker_id, fields))

    def delete_marker(self, marker_id: str) -> None:
        self.service.delete_marker(marker_id)

    def delete_all_markers(self) -> None:
        self.service.delete_all_markers()
