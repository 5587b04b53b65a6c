from typing import Any, Dict, List, Protocol, Sequence

from ..core.models import Marker, Position


class MarkerApi(Protocol):
    """Remote contract used by MarkerStore. Implemented over HTTP and in-process."""

    def list_markers(self) -> List[Marker]: ...

    def create_marker(self, position: Position, location: str, comments: Sequence[str], problem: bool) -> Marker: ...

    def update_marker(self, marker_id: str, fields: Dict[str, Any]) -> Marker: ...

    def delete_marker(self, marker_id: str) -> None: ...

    def delete_all_markers(self) -> None: ...
