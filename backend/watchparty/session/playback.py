from __future__ import annotations

from .models import Room


def play(room: Room) -> None:
    with room.lock:
        room.is_playing = True


def pause(room: Room) -> None:
    with room.lock:
        room.is_playing = False


def seek(room: Room, time_sec: float) -> None:
    with room.lock:
        room.current_time = time_sec


def sync_host_time(room: Room, time_sec: float) -> None:
    # Cache only: late joiners read it from room_data.
    with room.lock:
        room.current_time = time_sec


def switch_video(room: Room, video_id: str, is_playing: bool) -> None:
    with room.lock:
        room.video_id = video_id
        room.current_time = 0.0
        room.is_playing = is_playing


def skip(room: Room, direction: str, seconds: float) -> float:
    with room.lock:
        delta = seconds if direction == "forward" else -seconds
        room.current_time = max(room.current_time + delta, 0.0)
        return room.current_time


def video_changed_payload(room: Room) -> dict:
    return {
        "videoId": room.video_id,
        "currentTime": room.current_time,
        "isPlaying": room.is_playing,
        "skipCounts": room.skip_counts(),
    }


def room_data_payload(room: Room, sid: str) -> dict:
    return {
        "videoId": room.video_id,
        "isHost": sid == room.host_sid,
        "currentTime": room.current_time,
        "isPlaying": room.is_playing,
        "skipCounts": room.skip_counts(),
        "boreVotes": len(room.bore_vote.voters),
        "usersCount": len(room.participants),
        "userList": room.user_list(),
        "isLocked": room.is_locked,
        "recommendQueue": list(room.recommend_queue),
    }
