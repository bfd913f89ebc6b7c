from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, Iterator, Sequence, TypeVar, overload

T = TypeVar("T")

MAX_GROUPS = 4
MAX_GROUP_NAME = 20
MAX_REASON = 250


@dataclass(frozen=True)
class Team:
    id: int
    slack_team_id: str
    is_configured: bool


@dataclass(frozen=True)
class Group:
    id: int
    team_id: int
    group_name: str


@dataclass(frozen=True)
class UserGem:
    id: int
    user_id: str  # Slack member id
    team_id: int
    group_id: int | None
    is_admin: bool
    current_gems: int
    total_gems: int


@dataclass(frozen=True)
class GemTransaction:
    id: int
    gem_giver: str
    gem_receiver: str
    team_id: int
    reason: str
    timestamp: datetime


@dataclass(frozen=True)
class GemPeriod:
    id: int
    team_id: int
    reset_time: datetime


class Records(Sequence[T], Generic[T]):
    """Immutable result set returned by every store query."""

    __slots__ = ("_rows",)

    def __init__(self, rows=()) -> None:  # noqa: ANN001
        self._rows: tuple[T, ...] = tuple(rows)

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> Records[T]: ...

    def __getitem__(self, index):  # noqa: ANN001
        if isinstance(index, slice):
            return Records(self._rows[index])
        return self._rows[index]

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[T]:
        return iter(self._rows)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Records):
            return self._rows == other._rows
        return NotImplemented

    def __repr__(self) -> str:
        return f"Records({list(self._rows)!r})"

    def is_empty(self) -> bool:
        return not self._rows

    def count(self, value: object = None) -> int:  # type: ignore[override]
        if value is None:
            return len(self._rows)
        return self._rows.count(value)  # type: ignore[arg-type]

    def first(self) -> T | None:
        return self._rows[0] if self._rows else None


def normalize_group_name(name: str) -> str:
    """Capitalizes the first letter only; the rest is kept as typed."""
    n = (name or "").strip()
    return n[:1].upper() + n[1:]
