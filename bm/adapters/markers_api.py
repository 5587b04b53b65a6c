import requests
from typing import Any, Dict, List, Optional, Sequence
from ..core.constants import REQUEST_TIMEOUT_S
from ..core.errors import NotFoundError, RemoteFailure, ValidationError
from ..core.models import Marker, Position, marker_from_doc


class HttpMarkerApi:
    """
    HTTP client for the /api/markers endpoints.

    Error mapping:
    - connection errors, timeouts, 5xx, unparseable bodies -> RemoteFailure
    - 404 -> NotFoundError
    - 400 -> ValidationError
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str = "BannerMap/1.0",
        admin_token: Optional[str] = None,
        timeout_s: float = REQUEST_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = str(base_url or "").rstrip("/")
        self.user_agent = user_agent
        self.admin_token = admin_token
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "HttpMarkerApi":
        return cls(
            base_url=cfg.get("api_url", ""),
            user_agent=str(cfg.get("user_agent") or "BannerMap/1.0"),
            admin_token=cfg.get("admin_token"),
            timeout_s=float(cfg.get("request_timeout_s") or REQUEST_TIMEOUT_S),
        )

    def _headers(self) -> Dict[str, str]:
        h = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if self.admin_token:
            h["Authorization"] = f"Bearer {self.admin_token}"
        return h

    def _request(self, method: str, path: str, marker_id: str = "", json: Any = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, headers=self._headers(), json=json, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise RemoteFailure(f"{method} {path} failed: {e}") from e

        if r.status_code == 404:
            raise NotFoundError(marker_id or path)
        if r.status_code == 400:
            raise ValidationError(_error_message(r) or "rejected by server")
        if r.status_code >= 400:
            raise RemoteFailure(f"{method} {path}: {_error_message(r) or r.reason}", r.status_code)
        return r

    def _marker(self, r: requests.Response) -> Marker:
        try:
            return marker_from_doc(r.json())
        except (ValueError, KeyError, TypeError) as e:
            raise RemoteFailure(f"unexpected marker payload: {e}", r.status_code) from e

    # ---------- MarkerApi ----------

    def list_markers(self) -> List[Marker]:
        r = self._request("GET", "/api/markers")
        try:
            return [marker_from_doc(d) for d in r.json()]
        except (ValueError, KeyError, TypeError) as e:
            raise RemoteFailure(f"unexpected marker list payload: {e}", r.status_code) from e

    def create_marker(self, position: Position, location: str, comments: Sequence[str], problem: bool) -> Marker:
        body = {
            "position": [position[0], position[1]],
            "location": location,
            "comments": list(comments),
            "problem": bool(problem),
        }
        return self._marker(self._request("POST", "/api/markers", json=body))

    def update_marker(self, marker_id: str, fields: Dict[str, Any]) -> Marker:
        return self._marker(self._request("PUT", f"/api/markers/{marker_id}", marker_id, json=fields))

    def delete_marker(self, marker_id: str) -> None:
        self._request("DELETE", f"/api/markers/{marker_id}", marker_id)

    def delete_all_markers(self) -> None:
        self._request("DELETE", "/api/markers")

    def status(self) -> Dict[str, Any]:
        return self._request("GET", "/api/status").json()


def _error_message(r: requests.Response) -> str:
    try:
        data = r.json()
    except ValueError:
        return ""
    if isinstance(data, dict):
        return str(data.get("error") or "")
    return ""
