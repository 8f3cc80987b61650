import operator

import pytest

from watchparty.session.models import Room
from watchparty.session.votes import VoteCoordinator


def _room(participants=4):
    room = Room(room_id="R", host_sid="p0", video_id="v")
    for i in range(participants):
        room.participants[f"p{i}"] = f"P{i}"
    return room


@pytest.fixture
def effects():
    return {"quorum": [], "published": []}


def _skip(effects, scheduler, live=lambda room: True):
    return VoteCoordinator(
        "skip",
        state_of=lambda room: room.skip_vote,
        quorum=operator.ge,
        on_quorum=lambda room, key: effects["quorum"].append(key),
        publish=lambda room: effects["published"].append(room.skip_counts()),
        scheduler=scheduler,
        expiry_sec=2.0,
        is_live=live,
    )


def _bore(effects):
    return VoteCoordinator(
        "bore",
        state_of=lambda room: room.bore_vote,
        quorum=operator.gt,
        on_quorum=lambda room, key: effects["quorum"].append(key),
        publish=lambda room: effects["published"].append(len(room.bore_vote.voters)),
    )


def test_expiry_requires_scheduler():
    with pytest.raises(ValueError):
        VoteCoordinator(
            "x",
            state_of=lambda room: room.skip_vote,
            quorum=operator.ge,
            on_quorum=lambda room, key: None,
            publish=lambda room: None,
            expiry_sec=1.0,
        )


def test_second_vote_in_epoch_is_ignored(effects, scheduler):
    skip = _skip(effects, scheduler)
    room = _room(participants=6)

    skip.cast(room, "p1", "forward")
    skip.cast(room, "p1", "forward")
    skip.cast(room, "p1", "backward")

    assert room.skip_counts() == {"forward": 1, "backward": 0}
    assert effects["published"] == [{"forward": 1, "backward": 0}]
    assert len(scheduler.calls) == 1


def test_skip_quorum_is_at_least_half(effects, scheduler):
    skip = _skip(effects, scheduler)
    room = _room(participants=4)

    assert skip.cast(room, "p1", "forward") is False
    assert skip.cast(room, "p2", "backward") is False
    assert skip.cast(room, "p3", "forward") is True

    assert effects["quorum"] == ["forward"]
    assert room.skip_vote.voters == {}
    assert room.skip_vote.timers == {}
    assert effects["published"][-1] == {"forward": 0, "backward": 0}


def test_bore_quorum_is_strictly_more_than_half(effects):
    bore = _bore(effects)
    room = _room(participants=4)

    bore.cast(room, "p1", "bore")
    assert bore.cast(room, "p2", "bore") is False
    assert effects["quorum"] == []

    assert bore.cast(room, "p3", "bore") is True
    assert effects["quorum"] == ["bore"]
    assert effects["published"] == [1, 2, 3, 0]


def test_expiry_withdraws_exactly_one_vote(effects, scheduler):
    skip = _skip(effects, scheduler)
    room = _room(participants=6)

    skip.cast(room, "p1", "forward")
    skip.cast(room, "p2", "forward")
    scheduler.calls[0].callback()

    assert room.skip_counts() == {"forward": 1, "backward": 0}
    assert "p1" not in room.skip_vote.voters
    assert effects["published"][-1] == {"forward": 1, "backward": 0}

    # voter may vote again once expired
    skip.cast(room, "p1", "backward")
    assert room.skip_counts() == {"forward": 1, "backward": 1}


def test_expiry_after_quorum_reset_is_noop(effects, scheduler):
    skip = _skip(effects, scheduler)
    room = _room(participants=4)

    skip.cast(room, "p1", "forward")
    skip.cast(room, "p2", "forward")
    assert all(c.cancelled for c in scheduler.calls)

    published = len(effects["published"])
    scheduler.run_pending(include_cancelled=True)

    assert room.skip_counts() == {"forward": 0, "backward": 0}
    assert len(effects["published"]) == published


def test_stale_expiry_does_not_touch_new_epoch_vote(effects, scheduler):
    skip = _skip(effects, scheduler)
    room = _room(participants=6)

    skip.cast(room, "p1", "forward")
    stale = scheduler.calls[0]
    skip.reset(room)
    skip.cast(room, "p1", "backward")

    stale.callback()

    assert room.skip_vote.voters == {"p1": "backward"}


def test_expiry_against_deleted_room_is_noop(effects, scheduler):
    live = {"value": True}
    skip = _skip(effects, scheduler, live=lambda room: live["value"])
    room = _room(participants=6)

    skip.cast(room, "p1", "forward")
    live["value"] = False
    scheduler.run_pending()

    assert room.skip_vote.voters == {"p1": "forward"}
