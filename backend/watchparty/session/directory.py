from __future__ import annotations

from .models import Room
from .registry import RoomRegistry

UNKNOWN_HOST = "unknown"


def room_info(room: Room) -> dict:
    # Lock status only: no password, no participants.
    return {"isLocked": room.is_locked}


def list_entry(room: Room) -> dict:
    host_nickname = room.participants.get(room.host_sid) or UNKNOWN_HOST
    return {
        "roomId": room.room_id,
        "displayName": f"{host_nickname} : {room.room_id}",
        "isLocked": room.is_locked,
    }


def room_list(registry: RoomRegistry, page: int = 1, page_size: int = 10) -> dict:
    rooms, has_next_page = registry.page(page, page_size)
    return {
        "rooms": [list_entry(r) for r in rooms],
        "hasNextPage": has_next_page,
    }
