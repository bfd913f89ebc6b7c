from __future__ import annotations

import os
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone

from .models import (
    MAX_GROUP_NAME,
    MAX_GROUPS,
    MAX_REASON,
    GemPeriod,
    GemTransaction,
    Group,
    Records,
    Team,
    UserGem,
    normalize_group_name,
)


def validate_group_names(names: list[str]) -> list[str]:
    out: list[str] = []
    for raw in names:
        n = normalize_group_name(raw)
        if not n or len(n) > MAX_GROUP_NAME:
            raise ValueError(f"group name must be 1-{MAX_GROUP_NAME} characters: {raw!r}")
        if n in out:
            raise ValueError(f"duplicate group name: {n!r}")
        out.append(n)
    return out


def _now() -> datetime:
    return datetime.now(timezone.utc)


class GemStore(ABC):
    """Team-scoped persistence for users, groups, admins and gem totals.

    Every method takes the Slack team id (`T...`); the internal numeric id
    never leaves the store except on returned records.
    """

    # teams

    @abstractmethod
    def init_team(self, *, team_id: str, installer_id: str) -> Team:
        """Creates the team if missing and seeds the installer as an admin."""
        raise NotImplementedError

    @abstractmethod
    def get_team(self, *, team_id: str) -> Team | None:
        raise NotImplementedError

    @abstractmethod
    def mark_team_configured(self, *, team_id: str) -> None:
        raise NotImplementedError

    def is_team_configured(self, *, team_id: str) -> bool:
        team = self.get_team(team_id=team_id)
        return bool(team and team.is_configured)

    # groups

    @abstractmethod
    def list_groups(self, *, team_id: str) -> Records[Group]:
        raise NotImplementedError

    @abstractmethod
    def create_groups(self, *, team_id: str, names: list[str]) -> Records[Group]:
        raise NotImplementedError

    # users

    @abstractmethod
    def get_user(self, *, team_id: str, user_id: str) -> UserGem | None:
        raise NotImplementedError

    @abstractmethod
    def assign_group(self, *, team_id: str, user_id: str, group_id: int | None) -> UserGem:
        """Inserts the user if new, otherwise moves the existing row to `group_id`."""
        raise NotImplementedError

    @abstractmethod
    def list_group_members(self, *, team_id: str, group_id: int) -> Records[UserGem]:
        raise NotImplementedError

    # admins

    @abstractmethod
    def set_admin(self, *, team_id: str, user_id: str, is_admin: bool) -> bool:
        raise NotImplementedError

    @abstractmethod
    def list_admins(self, *, team_id: str) -> Records[UserGem]:
        raise NotImplementedError

    def count_admins(self, *, team_id: str) -> int:
        return self.list_admins(team_id=team_id).count()

    # gems

    @abstractmethod
    def award_gem(
        self,
        *,
        team_id: str,
        giver_id: str,
        receiver_id: str,
        reason: str,
        at: datetime | None = None,
    ) -> GemTransaction:
        """Atomically bumps the receiver's current/total gems and records the transaction."""
        raise NotImplementedError

    @abstractmethod
    def start_period(self, *, team_id: str, at: datetime | None = None) -> GemPeriod:
        """Records a period boundary and resets every current gem count of the team to 0."""
        raise NotImplementedError

    @abstractmethod
    def ranked_users(
        self,
        *,
        team_id: str,
        group_id: int,
        by: str = "current",
        limit: int | None = None,
    ) -> Records[UserGem]:
        """Users of a group with a positive count, highest first. `by` is `current` or `total`."""
        raise NotImplementedError

    @abstractmethod
    def recent_reasons(self, *, team_id: str, user_id: str, periods: int = 2) -> Records[GemTransaction]:
        """Transactions received by `user_id` since the `periods`-th most recent boundary, newest first."""
        raise NotImplementedError


class InMemoryGemStore(GemStore):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._teams: dict[str, Team] = {}
        self._groups: dict[int, Group] = {}
        self._users: dict[tuple[int, str], UserGem] = {}
        self._transactions: list[GemTransaction] = []
        self._periods: list[GemPeriod] = []
        self._ids = 0

    def _next_id(self) -> int:
        self._ids += 1
        return self._ids

    def _team(self, team_id: str) -> Team:
        team = self._teams.get(team_id)
        if team is None:
            raise LookupError(f"unknown team: {team_id}")
        return team

    def init_team(self, *, team_id: str, installer_id: str) -> Team:
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                team = Team(id=self._next_id(), slack_team_id=team_id, is_configured=False)
                self._teams[team_id] = team
            key = (team.id, installer_id)
            row = self._users.get(key)
            if row is None:
                self._users[key] = UserGem(
                    id=self._next_id(),
                    user_id=installer_id,
                    team_id=team.id,
                    group_id=None,
                    is_admin=True,
                    current_gems=0,
                    total_gems=0,
                )
            elif not row.is_admin:
                self._users[key] = _replace(row, is_admin=True)
            return team

    def get_team(self, *, team_id: str) -> Team | None:
        with self._lock:
            return self._teams.get(team_id)

    def mark_team_configured(self, *, team_id: str) -> None:
        with self._lock:
            team = self._team(team_id)
            self._teams[team_id] = Team(id=team.id, slack_team_id=team_id, is_configured=True)

    def list_groups(self, *, team_id: str) -> Records[Group]:
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                return Records()
            return Records(g for g in sorted(self._groups.values(), key=lambda g: g.id) if g.team_id == team.id)

    def create_groups(self, *, team_id: str, names: list[str]) -> Records[Group]:
        normalized = validate_group_names(names)
        with self._lock:
            team = self._team(team_id)
            existing = [g.group_name for g in self.list_groups(team_id=team_id)]
            if len(existing) + len(normalized) > MAX_GROUPS:
                raise ValueError(f"a team may have at most {MAX_GROUPS} groups")
            clash = [n for n in normalized if n in existing]
            if clash:
                raise ValueError(f"group already exists: {clash[0]!r}")
            created: list[Group] = []
            for n in normalized:
                g = Group(id=self._next_id(), team_id=team.id, group_name=n)
                self._groups[g.id] = g
                created.append(g)
            return Records(created)

    def get_user(self, *, team_id: str, user_id: str) -> UserGem | None:
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                return None
            return self._users.get((team.id, user_id))

    def assign_group(self, *, team_id: str, user_id: str, group_id: int | None) -> UserGem:
        with self._lock:
            team = self._team(team_id)
            if group_id is not None:
                g = self._groups.get(group_id)
                if g is None or g.team_id != team.id:
                    raise LookupError(f"unknown group {group_id} for team {team_id}")
            key = (team.id, user_id)
            row = self._users.get(key)
            if row is None:
                row = UserGem(
                    id=self._next_id(),
                    user_id=user_id,
                    team_id=team.id,
                    group_id=group_id,
                    is_admin=False,
                    current_gems=0,
                    total_gems=0,
                )
            else:
                row = _replace(row, group_id=group_id)
            self._users[key] = row
            return row

    def list_group_members(self, *, team_id: str, group_id: int) -> Records[UserGem]:
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                return Records()
            rows = [u for u in self._users.values() if u.team_id == team.id and u.group_id == group_id]
            return Records(sorted(rows, key=lambda u: u.id))

    def set_admin(self, *, team_id: str, user_id: str, is_admin: bool) -> bool:
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                return False
            key = (team.id, user_id)
            row = self._users.get(key)
            if row is None:
                return False
            self._users[key] = _replace(row, is_admin=is_admin)
            return True

    def list_admins(self, *, team_id: str) -> Records[UserGem]:
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                return Records()
            rows = [u for u in self._users.values() if u.team_id == team.id and u.is_admin]
            return Records(sorted(rows, key=lambda u: u.id))

    def award_gem(
        self,
        *,
        team_id: str,
        giver_id: str,
        receiver_id: str,
        reason: str,
        at: datetime | None = None,
    ) -> GemTransaction:
        with self._lock:
            team = self._team(team_id)
            key = (team.id, receiver_id)
            row = self._users.get(key)
            if row is None:
                raise LookupError(f"receiver {receiver_id} is not configured for team {team_id}")
            self._users[key] = _replace(
                row,
                current_gems=row.current_gems + 1,
                total_gems=row.total_gems + 1,
            )
            tx = GemTransaction(
                id=self._next_id(),
                gem_giver=giver_id,
                gem_receiver=receiver_id,
                team_id=team.id,
                reason=reason[:MAX_REASON],
                timestamp=at or _now(),
            )
            self._transactions.append(tx)
            return tx

    def start_period(self, *, team_id: str, at: datetime | None = None) -> GemPeriod:
        with self._lock:
            team = self._team(team_id)
            period = GemPeriod(id=self._next_id(), team_id=team.id, reset_time=at or _now())
            self._periods.append(period)
            for key, row in list(self._users.items()):
                if row.team_id == team.id and row.current_gems:
                    self._users[key] = _replace(row, current_gems=0)
            return period

    def ranked_users(
        self,
        *,
        team_id: str,
        group_id: int,
        by: str = "current",
        limit: int | None = None,
    ) -> Records[UserGem]:
        attr = _rank_attr(by)
        rows = [r for r in self.list_group_members(team_id=team_id, group_id=group_id) if getattr(r, attr) > 0]
        # stable on insertion order for ties
        rows.sort(key=lambda r: getattr(r, attr), reverse=True)
        if limit is not None:
            rows = rows[:limit]
        return Records(rows)

    def recent_reasons(self, *, team_id: str, user_id: str, periods: int = 2) -> Records[GemTransaction]:
        with self._lock:
            team = self._teams.get(team_id)
            if team is None:
                return Records()
            boundaries = sorted(
                (p.reset_time for p in self._periods if p.team_id == team.id),
                reverse=True,
            )
            since = boundaries[periods - 1] if len(boundaries) >= periods else None
            rows = [
                t
                for t in self._transactions
                if t.team_id == team.id
                and t.gem_receiver == user_id
                and (since is None or t.timestamp > since)
            ]
            rows.sort(key=lambda t: (t.timestamp, t.id), reverse=True)
            return Records(rows)


def _rank_attr(by: str) -> str:
    if by == "current":
        return "current_gems"
    if by == "total":
        return "total_gems"
    raise ValueError(f"unknown ranking: {by!r}")


def _replace(row: UserGem, **changes) -> UserGem:  # noqa: ANN003
    return replace(row, **changes)


def build_store(*, backend: str | None = None, database_url: str | None = None) -> GemStore:
    """
    `GEM_STORE_BACKEND` selects the backend:
    - `sql`: SQLAlchemy store on `DATABASE_URL` (required)
    - `memory`: in-process only, lost on restart
    - `auto` (default): SQL on `DATABASE_URL`, or a local sqlite file when it is unset
    """
    backend = (backend or os.environ.get("GEM_STORE_BACKEND") or "auto").strip().lower()

    if backend == "memory":
        return InMemoryGemStore()

    from .sql import SqlGemStore

    url = database_url or os.environ.get("DATABASE_URL")
    if backend == "sql":
        if not url:
            raise RuntimeError("GEM_STORE_BACKEND=sql requires DATABASE_URL")
        return SqlGemStore(url)

    if backend != "auto":
        raise RuntimeError("GEM_STORE_BACKEND must be one of `auto` / `sql` / `memory`")

    if not url:
        print("[store] DATABASE_URL is not set; using local sqlite file gemification.db")
        url = "sqlite:///gemification.db"
    return SqlGemStore(url)
