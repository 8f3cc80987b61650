from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from .models import Room, VoteState

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class VoteCoordinator:
    """Majority vote over a room's participants.

    One connection holds at most one vote per epoch. A vote on ``key`` reaches
    quorum when ``quorum(count(key), len(participants) / 2)`` is true; the
    ``on_quorum`` effect then runs and the epoch is reset. With ``expiry_sec``
    set, each vote is withdrawn again after that delay unless the epoch was
    reset first.
    """

    def __init__(
        self,
        name: str,
        state_of: Callable[[Room], VoteState],
        quorum: Callable[[float, float], bool],
        on_quorum: Callable[[Room, str], None],
        publish: Callable[[Room], None],
        scheduler: Scheduler | None = None,
        expiry_sec: float | None = None,
        is_live: Callable[[Room], bool] | None = None,
    ) -> None:
        if expiry_sec is not None and scheduler is None:
            raise ValueError("expiring votes need a scheduler")
        self.name = name
        self._state_of = state_of
        self._quorum = quorum
        self._on_quorum = on_quorum
        self._publish = publish
        self._scheduler = scheduler
        self._expiry_sec = expiry_sec
        self._is_live = is_live or (lambda room: True)

    def cast(self, room: Room, sid: str, key: str) -> bool:
        """Record a vote. Returns True when it completed a quorum."""
        with room.lock:
            state = self._state_of(room)
            if sid in state.voters:
                return False

            state.voters[sid] = key
            if self._expiry_sec is not None:
                state.timers[sid] = self._schedule_expiry(room, sid)

            self._publish(room)

            if not self._quorum(state.count(key), len(room.participants) / 2):
                return False

            logger.info("%s vote quorum room=%s key=%s", self.name, room.room_id, key)
            self._on_quorum(room, key)
            self.reset(room)
            self._publish(room)
            return True

    def reset(self, room: Room) -> None:
        """Start a new epoch, cancelling every pending expiry."""
        with room.lock:
            state = self._state_of(room)
            for handle in state.timers.values():
                handle.cancel()
            state.timers.clear()
            state.voters.clear()

    def _schedule_expiry(self, room: Room, sid: str) -> Any:
        holder: dict[str, Any] = {}

        def _expire() -> None:
            with room.lock:
                state = self._state_of(room)
                # Stale once the epoch was reset or the room was torn down.
                if state.timers.get(sid) is not holder.get("handle"):
                    return
                if not self._is_live(room):
                    return
                state.timers.pop(sid, None)
                state.voters.pop(sid, None)
                logger.debug("%s vote expired room=%s sid=%s", self.name, room.room_id, sid)
                self._publish(room)

        holder["handle"] = self._scheduler.call_later(self._expiry_sec, _expire)
        return holder["handle"]

