from __future__ import annotations

from threading import RLock

from .errors import RoomAlreadyExists
from .models import Room


class RoomRegistry:
    """In-memory map of room id to room state, in creation order."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}

    def create(self, room_id: str, video_id: str, host_sid: str, password: str | None = None) -> Room:
        with self._lock:
            if room_id in self._rooms:
                raise RoomAlreadyExists()

            room = Room(
                room_id=room_id,
                host_sid=host_sid,
                video_id=video_id,
                password=password or None,
            )
            self._rooms[room_id] = room
            return room

    def get(self, room_id: str) -> Room | None:
        with self._lock:
            return self._rooms.get(room_id)

    def delete(self, room_id: str) -> Room | None:
        with self._lock:
            return self._rooms.pop(room_id, None)

    def is_registered(self, room: Room) -> bool:
        with self._lock:
            return self._rooms.get(room.room_id) is room

    def rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def find_by_sid(self, sid: str) -> Room | None:
        """First room where ``sid`` joined, or which ``sid`` hosts without having joined."""
        with self._lock:
            for room in self._rooms.values():
                if sid in room.participants or room.host_sid == sid:
                    return room
            return None

    def page(self, page: int, page_size: int = 10) -> tuple[list[Room], bool]:
        page = max(1, page)
        with self._lock:
            newest_first = list(reversed(self._rooms.values()))
            total = len(newest_first)
        entries = newest_first[(page - 1) * page_size : page * page_size]
        return entries, page * page_size < total

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def clear(self) -> None:
        with self._lock:
            self._rooms.clear()
