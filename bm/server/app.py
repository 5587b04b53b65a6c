"""
Banner Map: REST server
=======================

Thin transport over MarkerService.

Endpoints:
- GET    /api/markers        -> all live markers
- POST   /api/markers        -> create (201)
- PUT    /api/markers/{id}   -> partial update
- DELETE /api/markers/{id}   -> archive then delete (204)
- DELETE /api/markers        -> archive all then delete all (204)
- GET    /api/status         -> liveness

Usage:
    python bannermap.py serve
"""
import hmac
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

import bm
from ..core.constants import MARKERS_COLLECTION, TRASH_COLLECTION
from ..core.errors import NotFoundError, ValidationError
from ..utils.log import log_line
from .service import MarkerService
from .storage import JsonCollection


def build_service(data_dir: Optional[Path]) -> MarkerService:
    """File-backed collections under data_dir, or in-memory ones when data_dir is None."""
    if data_dir is None:
        return MarkerService(JsonCollection(), JsonCollection())
    data_dir = Path(data_dir)
    return MarkerService(
        JsonCollection(data_dir / MARKERS_COLLECTION),
        JsonCollection(data_dir / TRASH_COLLECTION),
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(service: MarkerService, admin_token: Optional[str] = None) -> FastAPI:
    app = FastAPI(
        title="Banner Map API",
        version=bm.__version__,
        description="Marker CRUD with archive-before-delete",
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def require_admin(request: Request) -> None:
        """Only enforced when an admin token is configured."""
        if not admin_token:
            return
        header = request.headers.get("Authorization", "")
        supplied = header[len("Bearer "):] if header.startswith("Bearer ") else ""
        if not hmac.compare_digest(supplied.encode(), admin_token.encode()):
            raise HTTPException(status_code=403, detail="admin token required")

    # =========================================================================
    # ERROR MAPPING
    # =========================================================================

    @app.exception_handler(ValidationError)
    async def _validation_error(_request: Request, exc: ValidationError):
        return _error(400, str(exc))

    @app.exception_handler(NotFoundError)
    async def _not_found(_request: Request, exc: NotFoundError):
        return _error(404, "Marker not found")

    @app.exception_handler(HTTPException)
    async def _http_error(_request: Request, exc: HTTPException):
        return _error(exc.status_code, str(exc.detail))

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    @app.get("/api/markers")
    def list_markers():
        return service.list_markers()

    @app.post("/api/markers", status_code=201)
    async def create_marker(request: Request):
        body = await _json_body(request)
        try:
            return await run_in_threadpool(service.create_marker, body)
        except (ValidationError, NotFoundError):
            raise
        except Exception as e:
            log_line(f"ERROR | creating marker | err={e!r}")
            return _error(500, "Failed to create marker")

    @app.put("/api/markers/{marker_id}")
    async def update_marker(marker_id: str, request: Request):
        body = await _json_body(request)
        try:
            return await run_in_threadpool(service.update_marker, marker_id, body)
        except (ValidationError, NotFoundError):
            raise
        except Exception as e:
            log_line(f"ERROR | updating marker | id={marker_id} | err={e!r}")
            return _error(500, "Failed to update marker")

    @app.delete("/api/markers/{marker_id}", dependencies=[Depends(require_admin)])
    def delete_marker(marker_id: str):
        try:
            service.delete_marker(marker_id)
        except NotFoundError:
            raise
        except Exception as e:
            log_line(f"ERROR | deleting marker | id={marker_id} | err={e!r}")
            return _error(500, "Failed to delete marker")
        return Response(status_code=204)

    @app.delete("/api/markers", dependencies=[Depends(require_admin)])
    def delete_all_markers():
        try:
            service.delete_all_markers()
        except Exception as e:
            log_line(f"ERROR | deleting all markers | err={e!r}")
            return _error(500, "Failed to delete markers")
        return Response(status_code=204)

    @app.get("/api/status")
    def status():
        return {"status": "Server is running", "time": datetime.now(timezone.utc).isoformat()}

    return app


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("request body must be valid JSON") from None
    if not isinstance(body, dict):
        raise ValidationError("request body must be a JSON object")
    return body
