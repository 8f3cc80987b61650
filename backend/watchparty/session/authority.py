from __future__ import annotations

from .errors import NotHost
from .models import Room


def is_host(room: Room, sid: str) -> bool:
    return bool(sid) and sid == room.host_sid


def require_host(room: Room, sid: str) -> None:
    if not is_host(room, sid):
        raise NotHost(f"{sid} is not host of {room.room_id}")
