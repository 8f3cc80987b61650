from __future__ import annotations

from typing import Any, Callable

import pytest

from watchparty.server import create_app
from watchparty.session.registry import RoomRegistry
from watchparty.session.service import RoomService


class ScheduledCall:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Collects delayed callbacks; tests fire them explicitly."""

    def __init__(self) -> None:
        self.calls: list[ScheduledCall] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(delay, callback)
        self.calls.append(call)
        return call

    def pending(self) -> list[ScheduledCall]:
        return [c for c in self.calls if not c.cancelled]

    def run_pending(self, include_cancelled: bool = False) -> None:
        due, self.calls = self.calls, []
        for call in due:
            if include_cancelled or not call.cancelled:
                call.callback()


class RecordingBroadcaster:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.groups: dict[str, set[str]] = {}

    def to_room(self, room_id: str, event: str, *args: Any, skip_sid: str | None = None) -> None:
        self.sent.append({"to": room_id, "event": event, "args": args, "skip_sid": skip_sid})

    def to_sid(self, sid: str, event: str, *args: Any) -> None:
        self.sent.append({"to": sid, "event": event, "args": args, "skip_sid": None})

    def enter(self, sid: str, room_id: str) -> None:
        self.groups.setdefault(room_id, set()).add(sid)

    def leave(self, sid: str, room_id: str) -> None:
        self.groups.get(room_id, set()).discard(sid)

    def close(self, room_id: str) -> None:
        self.groups.pop(room_id, None)

    def events(self, name: str) -> list[dict[str, Any]]:
        return [m for m in self.sent if m["event"] == name]

    def last(self, name: str) -> dict[str, Any] | None:
        found = self.events(name)
        return found[-1] if found else None

    def names(self) -> list[str]:
        return [m["event"] for m in self.sent]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def service(broadcaster, scheduler):
    service = RoomService(RoomRegistry(), broadcaster, scheduler)
    yield service
    service.shutdown()


@pytest.fixture
def make_room(service):
    """Create a room hosted by ``host`` and join it with the given guests."""

    def _make(room_id="R", host="host", guests=(), password=None, host_joins=True):
        room = service.create_room(host, room_id, "vid-0", password=password)
        if host_joins:
            service.join_room(host, room_id, "Host", password=password)
        for sid in guests:
            service.join_room(sid, room_id, sid.title(), password=password)
        return room

    return _make


@pytest.fixture
def app_and_socketio(scheduler):
    app, socketio = create_app(
        config_overrides={"TESTING": True, "SOCKETIO_ASYNC_MODE": "threading"},
        scheduler=scheduler,
    )
    yield app, socketio
    app.extensions["watchparty"].shutdown()


@pytest.fixture
def connect(app_and_socketio):
    app, socketio = app_and_socketio
    clients = []

    def _connect():
        client = socketio.test_client(app)
        clients.append(client)
        return client

    yield _connect

    for client in clients:
        if client.is_connected():
            client.disconnect()

