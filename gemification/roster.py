from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

SLACKBOT_ID = "USLACKBOT"


@dataclass(frozen=True)
class Member:
    id: str
    name: str
    real_name: str | None = None
    is_bot: bool = False
    deleted: bool = False

    @property
    def is_human(self) -> bool:
        # Slackbot is reported with is_bot=False
        return not (self.is_bot or self.deleted or self.id == SLACKBOT_ID)

    @property
    def full_name(self) -> str:
        return self.real_name or self.name

    @classmethod
    def from_api(cls, raw: dict) -> Member:
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or raw.get("id") or ""),
            real_name=raw.get("real_name") or (raw.get("profile") or {}).get("real_name") or None,
            is_bot=bool(raw.get("is_bot")),
            deleted=bool(raw.get("deleted")),
        )


@dataclass(frozen=True)
class _Snapshot:
    members: tuple[Member, ...]
    fetched_at: float


class RosterCache:
    """
    Team member lists keyed by team id, refreshed when older than `ttl_seconds`.

    Refreshes for one team are single-flight: concurrent callers wait on the
    team's lock and reuse the snapshot the first caller stored. A failed fetch
    raises to the caller and leaves the previous snapshot in place.
    """

    def __init__(self, ttl_seconds: float = 60.0, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._snapshots: dict[str, _Snapshot] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, team_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(team_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[team_id] = lock
            return lock

    def _fresh(self, team_id: str) -> _Snapshot | None:
        snap = self._snapshots.get(team_id)
        if snap is None:
            return None
        if self._clock() - snap.fetched_at > self._ttl:
            return None
        return snap

    def get(self, team_id: str, fetch: Callable[[], list[Member]]) -> list[Member]:
        snap = self._fresh(team_id)
        if snap is not None:
            return list(snap.members)
        with self._lock_for(team_id):
            snap = self._fresh(team_id)
            if snap is not None:
                print(f"[roster] cache hit team={team_id}")
                return list(snap.members)
            if team_id in self._snapshots:
                print(f"[roster] stale, refreshing team={team_id}")
            else:
                print(f"[roster] no snapshot, fetching team={team_id}")
            members = tuple(fetch())
            self._snapshots[team_id] = _Snapshot(members=members, fetched_at=self._clock())
            return list(members)

    def invalidate(self, team_id: str) -> None:
        self._snapshots.pop(team_id, None)
