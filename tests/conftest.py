"""Shared fixtures: an in-memory server stack and a scriptable fake MarkerApi."""

import pytest

from bm.adapters.local_api import LocalMarkerApi
from bm.core.errors import NotFoundError, RemoteFailure
from bm.core.models import Marker, Origin
from bm.domain.store import MarkerStore
from bm.server.service import MarkerService
from bm.server.storage import JsonCollection


class FakeApi:
    """
    MarkerApi double.
    - `fail` maps a method name to an exception to raise
    - `ids` is consumed for server ids on create
    - `calls` records (method, args)
    """

    def __init__(self, ids=None):
        self.server = {}
        self.ids = list(ids or [])
        self.fail = {}
        self.calls = []
        self.hooks = {}
        self._n = 0

    def _maybe_fail(self, name):
        hook = self.hooks.get(name)
        if hook is not None:
            hook()
        exc = self.fail.get(name)
        if exc is not None:
            raise exc

    def _next_id(self):
        if self.ids:
            return self.ids.pop(0)
        self._n += 1
        return f"{self._n:024x}"

    def list_markers(self):
        self.calls.append(("list_markers", ()))
        self._maybe_fail("list_markers")
        return list(self.server.values())

    def create_marker(self, position, location, comments, problem):
        self.calls.append(("create_marker", (position, location, tuple(comments), problem)))
        self._maybe_fail("create_marker")
        m = Marker(
            id=self._next_id(),
            position=tuple(position),
            location=location,
            problem=problem,
            comments=tuple(comments),
            origin=Origin.CONFIRMED,
            created_at="2025-05-01T00:00:00.000Z",
            updated_at="2025-05-01T00:00:00.000Z",
        )
        self.server[m.id] = m
        return m

    def update_marker(self, marker_id, fields):
        self.calls.append(("update_marker", (marker_id, dict(fields))))
        self._maybe_fail("update_marker")
        if marker_id not in self.server:
            raise NotFoundError(marker_id)
        changes = dict(fields)
        if "comments" in changes:
            changes["comments"] = tuple(changes["comments"])
        m = self.server[marker_id].with_changes(updated_at="2025-05-02T00:00:00.000Z", **changes)
        self.server[marker_id] = m
        return m

    def delete_marker(self, marker_id):
        self.calls.append(("delete_marker", (marker_id,)))
        self._maybe_fail("delete_marker")
        if self.server.pop(marker_id, None) is None:
            raise NotFoundError(marker_id)

    def delete_all_markers(self):
        self.calls.append(("delete_all_markers", ()))
        self._maybe_fail("delete_all_markers")
        self.server.clear()

    def called(self, name):
        return [args for (n, args) in self.calls if n == name]


def confirmed_marker(marker_id, location="", position=(37.5, 127.0), **kw):
    return Marker(id=marker_id, position=position, location=location, origin=Origin.CONFIRMED, **kw)


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def store(fake_api):
    return MarkerStore(fake_api)


@pytest.fixture
def service():
    return MarkerService(JsonCollection(), JsonCollection())


@pytest.fixture
def local_store(service):
    return MarkerStore(LocalMarkerApi(service))


@pytest.fixture
def network_down():
    return RemoteFailure("connection refused")
