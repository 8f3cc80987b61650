from __future__ import annotations

import logging
import operator
from contextlib import contextmanager
from typing import Any, Iterator, Protocol

from . import chat, directory, playback, recommendations
from .authority import is_host, require_host
from .errors import InvalidPayload, RoomNotFound, WrongPassword
from .models import BORE_KEY, SKIP_DIRECTIONS, Room
from .registry import RoomRegistry
from .votes import Scheduler, VoteCoordinator

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    def to_room(self, room_id: str, event: str, *args: Any, skip_sid: str | None = None) -> None: ...

    def to_sid(self, sid: str, event: str, *args: Any) -> None: ...

    def enter(self, sid: str, room_id: str) -> None: ...

    def leave(self, sid: str, room_id: str) -> None: ...

    def close(self, room_id: str) -> None: ...


class RoomService:
    """Room session engine.

    Every public method takes the requesting connection id first and either
    broadcasts the resulting events or raises a ``RoomError``/``NotHost``.
    Mutations of one room happen under that room's lock.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        broadcaster: Broadcaster,
        scheduler: Scheduler,
        *,
        skip_seconds: float = 10,
        skip_vote_expiry_sec: float = 2.0,
        play_after_change: bool = True,
        page_size: int = 10,
        chat_max_length: int = 10,
        queue_limit: int | None = 50,
    ) -> None:
        self.registry = registry
        self.broadcaster = broadcaster
        self.skip_seconds = skip_seconds
        self.play_after_change = play_after_change
        self.page_size = page_size
        self.chat_max_length = chat_max_length
        self.queue_limit = queue_limit

        self.skip_votes = VoteCoordinator(
            "skip",
            state_of=lambda room: room.skip_vote,
            quorum=operator.ge,
            on_quorum=self._on_skip_quorum,
            publish=self._publish_skip_counts,
            scheduler=scheduler,
            expiry_sec=skip_vote_expiry_sec,
            is_live=registry.is_registered,
        )
        self.bore_votes = VoteCoordinator(
            "bore",
            state_of=lambda room: room.bore_vote,
            quorum=operator.gt,
            on_quorum=self._on_bore_quorum,
            publish=self._publish_bore_count,
        )

    def _room(self, room_id: str) -> Room:
        room = self.registry.get(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    @contextmanager
    def _locked_room(self, room_id: str) -> Iterator[Room]:
        room = self._room(room_id)
        with room.lock:
            # The host may have closed the room between lookup and lock.
            if not self.registry.is_registered(room):
                raise RoomNotFound()
            yield room

    @contextmanager
    def _locked_host_room(self, sid: str, room_id: str) -> Iterator[Room]:
        with self._locked_room(room_id) as room:
            require_host(room, sid)
            yield room

    # Rooms

    def create_room(self, sid: str, room_id: str, video_id: str, password: str | None = None) -> Room:
        room = self.registry.create(room_id, video_id, host_sid=sid, password=password)
        self.broadcaster.enter(sid, room_id)
        self.broadcaster.to_sid(sid, "room_created", {"roomId": room_id})
        logger.info("room created room=%s host=%s locked=%s", room_id, sid, room.is_locked)
        return room

    def join_room(self, sid: str, room_id: str, nickname: str, password: str | None = None) -> Room:
        with self._locked_room(room_id) as room:
            if room.is_locked and not is_host(room, sid) and password != room.password:
                raise WrongPassword()

            room.participants[sid] = nickname
            self.broadcaster.enter(sid, room_id)
            self.broadcaster.to_sid(sid, "room_data", playback.room_data_payload(room, sid))
            self.broadcaster.to_room(room_id, "user_list_update", room.user_list())

        logger.info("room joined room=%s sid=%s nickname=%s", room_id, sid, nickname)
        return room

    def get_room_info(self, sid: str, room_id: str) -> dict:
        with self._locked_room(room_id) as room:
            info = directory.room_info(room)
        self.broadcaster.to_sid(sid, "room_info", info)
        return info

    def get_room_list(self, sid: str, page: int = 1) -> dict:
        listing = directory.room_list(self.registry, page, self.page_size)
        self.broadcaster.to_sid(sid, "room_list", listing)
        return listing

    # Host-only playback

    def host_time_update(self, sid: str, room_id: str, time_sec: float) -> None:
        with self._locked_host_room(sid, room_id) as room:
            playback.sync_host_time(room, time_sec)

    def play(self, sid: str, room_id: str) -> None:
        with self._locked_host_room(sid, room_id) as room:
            playback.play(room)
            self.broadcaster.to_room(room_id, "video_play", skip_sid=sid)

    def pause(self, sid: str, room_id: str) -> None:
        with self._locked_host_room(sid, room_id) as room:
            playback.pause(room)
            self.broadcaster.to_room(room_id, "video_pause", skip_sid=sid)

    def seek(self, sid: str, room_id: str, time_sec: float) -> None:
        with self._locked_host_room(sid, room_id) as room:
            playback.seek(room, time_sec)
            self.broadcaster.to_room(room_id, "video_seek", {"time": room.current_time}, skip_sid=sid)

    def change_video(self, sid: str, room_id: str, video_id: str) -> None:
        with self._locked_host_room(sid, room_id) as room:
            self._switch_video(room, video_id, self.play_after_change)
            self.bore_votes.reset(room)
            self._publish_bore_count(room)
        logger.info("video changed room=%s video=%s", room_id, video_id)

    def video_ended(self, sid: str, room_id: str) -> None:
        with self._locked_host_room(sid, room_id) as room:
            self._advance_or_pause(room)
            self.bore_votes.reset(room)
            self._publish_bore_count(room)

    def _switch_video(self, room: Room, video_id: str, is_playing: bool) -> None:
        self.skip_votes.reset(room)
        playback.switch_video(room, video_id, is_playing)
        self.broadcaster.to_room(room.room_id, "video_changed", playback.video_changed_payload(room))

    def _advance_or_pause(self, room: Room) -> None:
        next_video_id = recommendations.dequeue_next(room)
        if next_video_id is None:
            playback.pause(room)
            logger.info("queue empty, pausing room=%s", room.room_id)
            return

        self._switch_video(room, next_video_id, True)
        self.broadcaster.to_room(room.room_id, "recommend_queue_updated", list(room.recommend_queue))
        logger.info("auto-advance room=%s video=%s", room.room_id, next_video_id)

    # Recommendations and votes

    def add_recommendation(self, sid: str, room_id: str, video_id: str) -> list[str]:
        with self._locked_room(room_id) as room:
            queue = recommendations.enqueue(room, video_id, self.queue_limit)
            self.broadcaster.to_room(room_id, "recommend_queue_updated", queue)
        return queue

    def bore_vote(self, sid: str, room_id: str) -> bool:
        with self._locked_room(room_id) as room:
            return self.bore_votes.cast(room, sid, BORE_KEY)

    def skip_request(self, sid: str, room_id: str, direction: str) -> bool:
        if direction not in SKIP_DIRECTIONS:
            raise InvalidPayload("unknown skip direction")
        with self._locked_room(room_id) as room:
            return self.skip_votes.cast(room, sid, direction)

    def _on_skip_quorum(self, room: Room, direction: str) -> None:
        new_time = playback.skip(room, direction, self.skip_seconds)
        self.broadcaster.to_room(room.room_id, "video_seek", {"time": new_time})
        logger.info("skip %s room=%s time=%s", direction, room.room_id, new_time)

    def _on_bore_quorum(self, room: Room, key: str) -> None:
        self._advance_or_pause(room)

    def _publish_skip_counts(self, room: Room) -> None:
        self.broadcaster.to_room(room.room_id, "skip_counts_update", room.skip_counts())

    def _publish_bore_count(self, room: Room) -> None:
        self.broadcaster.to_room(room.room_id, "bore_vote_update", len(room.bore_vote.voters))

    # Chat

    def chat_message(self, sid: str, room_id: str, text: str) -> dict:
        with self._locked_room(room_id) as room:
            payload = chat.chat_payload(room, sid, text, self.chat_max_length)
            self.broadcaster.to_room(room_id, "chat_message", payload)
        return payload

    # Connection lifecycle

    def leave(self, sid: str, explicit: bool = False) -> Room | None:
        """Drop ``sid`` from its room, closing the room if ``sid`` is its host."""
        room = self.registry.find_by_sid(sid)
        if room is None:
            return None

        with room.lock:
            if not self.registry.is_registered(room):
                return None

            room.participants.pop(sid, None)
            if is_host(room, sid):
                self._close_room(room)
                return room

            self.broadcaster.to_room(room.room_id, "user_list_update", room.user_list())
            if explicit:
                self.broadcaster.leave(sid, room.room_id)
        return room

    def _close_room(self, room: Room) -> None:
        self.registry.delete(room.room_id)
        self.skip_votes.reset(room)
        self.bore_votes.reset(room)
        self.broadcaster.to_room(room.room_id, "room_closed")
        self.broadcaster.close(room.room_id)
        logger.info("room closed room=%s (host left)", room.room_id)

    def shutdown(self) -> None:
        for room in self.registry.rooms():
            self.skip_votes.reset(room)
            self.bore_votes.reset(room)
        self.registry.clear()
