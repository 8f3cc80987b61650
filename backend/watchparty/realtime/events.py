from __future__ import annotations

from enum import Enum


class Inbound(str, Enum):
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    GET_ROOM_INFO = "get_room_info"
    GET_ROOM_LIST = "get_room_list"
    HOST_CURRENT_TIME_UPDATE = "host_current_time_update"
    VIDEO_PLAY = "video_play"
    VIDEO_PAUSE = "video_pause"
    VIDEO_SEEK = "video_seek"
    CHANGE_VIDEO = "change_video"
    ADD_RECOMMEND_VIDEO = "add_recommend_video"
    VIDEO_ENDED = "video_ended"
    BORE_VOTE = "bore_vote"
    SKIP_REQUEST = "skip_request"
    CHAT_MESSAGE = "chat_message"
    LEAVE_ROOM = "leave_room"
    DISCONNECT_BUTTON = "disconnect_button"
    DISCONNECT = "disconnect"


# Commands only the host may issue; anyone else is ignored without a reply.
HOST_ONLY = frozenset(
    {
        Inbound.HOST_CURRENT_TIME_UPDATE,
        Inbound.VIDEO_PLAY,
        Inbound.VIDEO_PAUSE,
        Inbound.VIDEO_SEEK,
        Inbound.CHANGE_VIDEO,
        Inbound.VIDEO_ENDED,
    }
)
