from __future__ import annotations

from .models import Room

ANONYMOUS = "anonymous"
ELLIPSIS = "…"


def truncate(text: str, max_length: int = 10) -> str:
    if len(text) > max_length:
        return text[:max_length] + ELLIPSIS
    return text


def chat_payload(room: Room, sid: str, text: str, max_length: int = 10) -> dict:
    nickname = room.participants.get(sid) or ANONYMOUS
    return {"nickname": nickname, "message": truncate(text, max_length)}
