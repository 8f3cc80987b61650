from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import Any


SKIP_DIRECTIONS: tuple[str, ...] = ("forward", "backward")
BORE_KEY = "bore"


@dataclass
class VoteState:
    # sid -> key the sid voted for (a direction for skip votes, BORE_KEY for bore votes)
    voters: dict[str, str] = field(default_factory=dict)
    # sid -> pending expiry handle
    timers: dict[str, Any] = field(default_factory=dict)

    def count(self, key: str) -> int:
        return sum(1 for k in self.voters.values() if k == key)


@dataclass
class Room:
    room_id: str
    host_sid: str
    video_id: str
    password: str | None = None
    current_time: float = 0.0
    is_playing: bool = False
    participants: dict[str, str] = field(default_factory=dict)
    skip_vote: VoteState = field(default_factory=VoteState)
    bore_vote: VoteState = field(default_factory=VoteState)
    recommend_queue: list[str] = field(default_factory=list)
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    @property
    def is_locked(self) -> bool:
        return self.password is not None

    def user_list(self) -> list[str]:
        return list(self.participants.values())

    def skip_counts(self) -> dict[str, int]:
        return {d: self.skip_vote.count(d) for d in SKIP_DIRECTIONS}
