from __future__ import annotations

import logging
import math
from typing import Any, Callable

from flask import request
from flask_socketio import SocketIO, emit

from ..session.errors import InvalidPayload, NotHost, RoomError
from ..session.service import RoomService
from .events import HOST_ONLY, Inbound

logger = logging.getLogger(__name__)

Handler = Callable[[str, dict], Any]


def _required_text(payload: dict, key: str, max_length: int = 200) -> str:
    raw = payload.get(key)
    if not isinstance(raw, str):
        raise InvalidPayload(f"missing {key}")
    value = raw.strip()
    if not value or len(value) > max_length:
        raise InvalidPayload(f"invalid {key}")
    return value


def _optional_text(payload: dict, key: str) -> str | None:
    raw = payload.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise InvalidPayload(f"invalid {key}")
    return raw or None


def _time(payload: dict, key: str) -> float:
    raw = payload.get(key)
    # bool is an int subclass
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise InvalidPayload(f"invalid {key}")
    value = float(raw)
    if not math.isfinite(value) or value < 0:
        raise InvalidPayload(f"invalid {key}")
    return value


def _page(payload: dict) -> int:
    raw = payload.get("page", 1)
    if raw is None:
        return 1
    if isinstance(raw, bool):
        raise InvalidPayload("invalid page")
    try:
        return max(1, int(raw))
    except (TypeError, ValueError):
        raise InvalidPayload("invalid page") from None


def _validate_nickname(name: str) -> str:
    n = name.strip()
    if len(n) > 16:
        raise InvalidPayload("invalid nickname")
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        raise InvalidPayload("invalid nickname")
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            raise InvalidPayload("invalid nickname")
    return n


def build_dispatch_table(service: RoomService) -> dict[Inbound, Handler]:
    def create_room(sid: str, payload: dict) -> None:
        service.create_room(
            sid,
            _required_text(payload, "roomId"),
            _required_text(payload, "videoId"),
            password=_optional_text(payload, "password"),
        )

    def join_room(sid: str, payload: dict) -> None:
        service.join_room(
            sid,
            _required_text(payload, "roomId"),
            _validate_nickname(_required_text(payload, "nickname")),
            password=_optional_text(payload, "password"),
        )

    def get_room_info(sid: str, payload: dict) -> None:
        service.get_room_info(sid, _required_text(payload, "roomId"))

    def get_room_list(sid: str, payload: dict) -> None:
        service.get_room_list(sid, _page(payload))

    def host_current_time_update(sid: str, payload: dict) -> None:
        service.host_time_update(sid, _required_text(payload, "roomId"), _time(payload, "currentTime"))

    def video_play(sid: str, payload: dict) -> None:
        service.play(sid, _required_text(payload, "roomId"))

    def video_pause(sid: str, payload: dict) -> None:
        service.pause(sid, _required_text(payload, "roomId"))

    def video_seek(sid: str, payload: dict) -> None:
        service.seek(sid, _required_text(payload, "roomId"), _time(payload, "time"))

    def change_video(sid: str, payload: dict) -> None:
        service.change_video(sid, _required_text(payload, "roomId"), _required_text(payload, "newVideoId"))

    def add_recommend_video(sid: str, payload: dict) -> None:
        service.add_recommendation(sid, _required_text(payload, "roomId"), _required_text(payload, "videoId"))

    def video_ended(sid: str, payload: dict) -> None:
        service.video_ended(sid, _required_text(payload, "roomId"))

    def bore_vote(sid: str, payload: dict) -> None:
        service.bore_vote(sid, _required_text(payload, "roomId"))

    def skip_request(sid: str, payload: dict) -> None:
        service.skip_request(sid, _required_text(payload, "roomId"), _required_text(payload, "direction"))

    def chat_message(sid: str, payload: dict) -> None:
        message = payload.get("message")
        if not isinstance(message, str):
            raise InvalidPayload("invalid message")
        service.chat_message(sid, _required_text(payload, "roomId"), message)

    def leave(sid: str, payload: dict) -> None:
        service.leave(sid, explicit=True)

    return {
        Inbound.CREATE_ROOM: create_room,
        Inbound.JOIN_ROOM: join_room,
        Inbound.GET_ROOM_INFO: get_room_info,
        Inbound.GET_ROOM_LIST: get_room_list,
        Inbound.HOST_CURRENT_TIME_UPDATE: host_current_time_update,
        Inbound.VIDEO_PLAY: video_play,
        Inbound.VIDEO_PAUSE: video_pause,
        Inbound.VIDEO_SEEK: video_seek,
        Inbound.CHANGE_VIDEO: change_video,
        Inbound.ADD_RECOMMEND_VIDEO: add_recommend_video,
        Inbound.VIDEO_ENDED: video_ended,
        Inbound.BORE_VOTE: bore_vote,
        Inbound.SKIP_REQUEST: skip_request,
        Inbound.CHAT_MESSAGE: chat_message,
        Inbound.LEAVE_ROOM: leave,
        Inbound.DISCONNECT_BUTTON: leave,
    }


def _socket_handler(event: Inbound, handler: Handler) -> Callable[..., None]:
    def _on_event(data=None):
        payload = data if isinstance(data, dict) else {}
        sid = request.sid
        try:
            handler(sid, payload)
        except NotHost:
            logger.debug("dropped %s from non-host sid=%s", event.value, sid)
        except RoomError as exc:
            if event in HOST_ONLY:
                logger.debug("dropped %s sid=%s: %s", event.value, sid, exc.message)
                return
            emit("error", {"message": exc.message})
        except Exception:
            logger.exception("unhandled error in %s sid=%s", event.value, sid)

    return _on_event


def register_socketio_handlers(socketio: SocketIO, service: RoomService) -> None:
    for event, handler in build_dispatch_table(service).items():
        socketio.on_event(event.value, _socket_handler(event, handler))

    @socketio.on("connect")
    def on_connect(auth=None):
        logger.debug("connected sid=%s", request.sid)

    @socketio.on(Inbound.DISCONNECT.value)
    def on_disconnect(reason=None):
        sid = request.sid
        try:
            service.leave(sid)
        except Exception:
            logger.exception("cleanup failed for sid=%s", sid)
        logger.debug("disconnected sid=%s reason=%s", sid, reason)
