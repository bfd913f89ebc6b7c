from __future__ import annotations

import pytest

from gemification.roster import Member, RosterCache


class Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_snapshot_reused_within_ttl():
    clock = Clock()
    cache = RosterCache(60, clock=clock)
    calls = []

    def fetch():
        calls.append(1)
        return [Member(id="U1", name="alice")]

    first = cache.get("T1", fetch)
    clock.now += 59
    second = cache.get("T1", fetch)
    assert first == second
    assert len(calls) == 1


def test_stale_snapshot_refreshed_once():
    clock = Clock()
    cache = RosterCache(60, clock=clock)
    versions = iter([[Member(id="U1", name="alice")], [Member(id="U1", name="alice"), Member(id="U2", name="bob")]])
    calls = []

    def fetch():
        calls.append(1)
        return next(versions)

    cache.get("T1", fetch)
    clock.now += 61
    assert [m.id for m in cache.get("T1", fetch)] == ["U1", "U2"]
    assert [m.id for m in cache.get("T1", fetch)] == ["U1", "U2"]
    assert len(calls) == 2


def test_teams_are_cached_separately():
    cache = RosterCache(60, clock=Clock())
    cache.get("T1", lambda: [Member(id="U1", name="alice")])
    assert cache.get("T2", lambda: [Member(id="V1", name="victor")])[0].id == "V1"
    assert cache.get("T1", lambda: [])[0].id == "U1"


def test_fetch_failure_propagates():
    clock = Clock()
    cache = RosterCache(60, clock=clock)

    def boom():
        raise RuntimeError("slack down")

    with pytest.raises(RuntimeError):
        cache.get("T1", boom)
    cache.get("T1", lambda: [Member(id="U1", name="alice")])
    clock.now += 120
    with pytest.raises(RuntimeError):
        cache.get("T1", boom)


def test_member_from_api_and_humans():
    m = Member.from_api({"id": "U1", "name": "alice", "profile": {"real_name": "Alice A"}})
    assert m.full_name == "Alice A"
    assert m.is_human
    assert not Member.from_api({"id": "B1", "name": "bot", "is_bot": True}).is_human
    assert not Member.from_api({"id": "U9", "name": "gone", "deleted": True}).is_human
    assert not Member(id="USLACKBOT", name="slackbot").is_human
    assert Member(id="U2", name="bob").full_name == "bob"
