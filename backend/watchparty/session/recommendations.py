from __future__ import annotations

from .errors import QueueFull
from .models import Room


def enqueue(room: Room, video_id: str, limit: int | None = None) -> list[str]:
    with room.lock:
        if limit is not None and len(room.recommend_queue) >= limit:
            raise QueueFull()
        room.recommend_queue.append(video_id)
        return list(room.recommend_queue)


def dequeue_next(room: Room) -> str | None:
    with room.lock:
        if not room.recommend_queue:
            return None
        return room.recommend_queue.pop(0)
