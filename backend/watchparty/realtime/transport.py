from __future__ import annotations

from typing import Any, Callable

from flask_socketio import SocketIO


class PendingCall:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class SocketIOScheduler:
    """Delayed callbacks on Socket.IO background tasks.

    Background tasks cannot be killed, so cancellation only marks the call;
    the task still wakes up and returns without running the callback.
    """

    def __init__(self, socketio: SocketIO) -> None:
        self._socketio = socketio

    def call_later(self, delay: float, callback: Callable[[], None]) -> PendingCall:
        pending = PendingCall()

        def _runner() -> None:
            self._socketio.sleep(delay)
            if not pending.cancelled:
                callback()

        self._socketio.start_background_task(_runner)
        return pending


class SocketIOBroadcaster:
    def __init__(self, socketio: SocketIO, namespace: str = "/") -> None:
        self._socketio = socketio
        self._namespace = namespace

    def to_room(self, room_id: str, event: str, *args: Any, skip_sid: str | None = None) -> None:
        self._socketio.emit(event, *args, to=room_id, skip_sid=skip_sid, namespace=self._namespace)

    def to_sid(self, sid: str, event: str, *args: Any) -> None:
        self._socketio.emit(event, *args, to=sid, namespace=self._namespace)

    def enter(self, sid: str, room_id: str) -> None:
        self._socketio.server.enter_room(sid, room_id, namespace=self._namespace)

    def leave(self, sid: str, room_id: str) -> None:
        self._socketio.server.leave_room(sid, room_id, namespace=self._namespace)

    def close(self, room_id: str) -> None:
        self._socketio.close_room(room_id, namespace=self._namespace)
