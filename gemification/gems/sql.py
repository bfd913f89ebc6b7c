from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool

from .models import MAX_GROUP_NAME, MAX_GROUPS, MAX_REASON, GemPeriod, GemTransaction, Group, Records, Team, UserGem
from .store import GemStore, _rank_attr, validate_group_names

metadata = MetaData()

teams = Table(
    "teams",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("slack_team_id", String(32), nullable=False, unique=True),
    Column("is_configured", Boolean, nullable=False, default=False),
)

groups = Table(
    "team_groups",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("team_id", Integer, ForeignKey("teams.id"), nullable=False),
    Column("group_name", String(MAX_GROUP_NAME), nullable=False),
    UniqueConstraint("team_id", "group_name", name="uq_group_name_per_team"),
)

user_gems = Table(
    "user_gems",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(32), nullable=False),
    Column("team_id", Integer, ForeignKey("teams.id"), nullable=False),
    Column("group_id", Integer, ForeignKey("team_groups.id"), nullable=True),
    Column("is_admin", Boolean, nullable=False, default=False),
    Column("current_gems", Integer, nullable=False, default=0),
    Column("total_gems", Integer, nullable=False, default=0),
    UniqueConstraint("user_id", "team_id", name="uq_user_per_team"),
)

gem_transactions = Table(
    "gem_transactions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("gem_giver", String(32), nullable=False),
    Column("gem_receiver", String(32), nullable=False),
    Column("team_id", Integer, ForeignKey("teams.id"), nullable=False),
    Column("reason", String(MAX_REASON), nullable=False),
    Column("timestamp", DateTime, nullable=False),
)

gem_periods = Table(
    "gem_periods",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("team_id", Integer, ForeignKey("teams.id"), nullable=False),
    Column("reset_time", DateTime, nullable=False),
)


def _to_db(dt: datetime | None) -> datetime:
    # stored as naive UTC so sqlite and mysql compare the same way
    dt = dt or datetime.now(timezone.utc)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _from_db(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _team(row) -> Team:  # noqa: ANN001
    return Team(id=row.id, slack_team_id=row.slack_team_id, is_configured=bool(row.is_configured))


def _group(row) -> Group:  # noqa: ANN001
    return Group(id=row.id, team_id=row.team_id, group_name=row.group_name)


def _user(row) -> UserGem:  # noqa: ANN001
    return UserGem(
        id=row.id,
        user_id=row.user_id,
        team_id=row.team_id,
        group_id=row.group_id,
        is_admin=bool(row.is_admin),
        current_gems=int(row.current_gems or 0),
        total_gems=int(row.total_gems or 0),
    )


def _transaction(row) -> GemTransaction:  # noqa: ANN001
    return GemTransaction(
        id=row.id,
        gem_giver=row.gem_giver,
        gem_receiver=row.gem_receiver,
        team_id=row.team_id,
        reason=row.reason,
        timestamp=_from_db(row.timestamp),
    )


def build_engine(url: str) -> Engine:
    if url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every pooled connection gets its own empty database
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=5)


class SqlGemStore(GemStore):
    """Relational store on SQLAlchemy Core.

    Every statement is built with bound parameters; each public method runs
    inside `engine.begin()`, which commits on success, rolls back on error and
    returns the connection to the pool on both paths.
    """

    def __init__(self, url: str, *, engine: Engine | None = None, create_schema: bool = True) -> None:
        self._engine = engine or build_engine(url)
        if create_schema:
            metadata.create_all(self._engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def _team_row(self, conn: Connection, team_id: str):  # noqa: ANN202
        return conn.execute(select(teams).where(teams.c.slack_team_id == team_id)).first()

    def _team_pk(self, conn: Connection, team_id: str) -> int:
        row = self._team_row(conn, team_id)
        if row is None:
            raise LookupError(f"unknown team: {team_id}")
        return row.id

    def init_team(self, *, team_id: str, installer_id: str) -> Team:
        with self._engine.begin() as conn:
            row = self._team_row(conn, team_id)
            if row is None:
                conn.execute(teams.insert().values(slack_team_id=team_id, is_configured=False))
                row = self._team_row(conn, team_id)
            existing = conn.execute(
                select(user_gems.c.id).where(user_gems.c.team_id == row.id, user_gems.c.user_id == installer_id)
            ).first()
            if existing is None:
                conn.execute(
                    user_gems.insert().values(
                        user_id=installer_id,
                        team_id=row.id,
                        group_id=None,
                        is_admin=True,
                        current_gems=0,
                        total_gems=0,
                    )
                )
            else:
                conn.execute(user_gems.update().where(user_gems.c.id == existing.id).values(is_admin=True))
            return _team(row)

    def get_team(self, *, team_id: str) -> Team | None:
        with self._engine.begin() as conn:
            row = self._team_row(conn, team_id)
            return _team(row) if row is not None else None

    def mark_team_configured(self, *, team_id: str) -> None:
        with self._engine.begin() as conn:
            result = conn.execute(teams.update().where(teams.c.slack_team_id == team_id).values(is_configured=True))
            if result.rowcount == 0:
                raise LookupError(f"unknown team: {team_id}")

    def list_groups(self, *, team_id: str) -> Records[Group]:
        with self._engine.begin() as conn:
            rows = conn.execute(
                select(groups)
                .join(teams, teams.c.id == groups.c.team_id)
                .where(teams.c.slack_team_id == team_id)
                .order_by(groups.c.id)
            ).all()
            return Records(_group(r) for r in rows)

    def create_groups(self, *, team_id: str, names: list[str]) -> Records[Group]:
        normalized = validate_group_names(names)
        with self._engine.begin() as conn:
            team_pk = self._team_pk(conn, team_id)
            existing = conn.execute(select(groups.c.group_name).where(groups.c.team_id == team_pk)).scalars().all()
            if len(existing) + len(normalized) > MAX_GROUPS:
                raise ValueError(f"a team may have at most {MAX_GROUPS} groups")
            clash = [n for n in normalized if n in existing]
            if clash:
                raise ValueError(f"group already exists: {clash[0]!r}")
            for n in normalized:
                conn.execute(groups.insert().values(team_id=team_pk, group_name=n))
            rows = conn.execute(
                select(groups).where(groups.c.team_id == team_pk, groups.c.group_name.in_(normalized)).order_by(groups.c.id)
            ).all()
            return Records(_group(r) for r in rows)

    def _user_row(self, conn: Connection, team_pk: int, user_id: str):  # noqa: ANN202
        return conn.execute(
            select(user_gems).where(user_gems.c.team_id == team_pk, user_gems.c.user_id == user_id)
        ).first()

    def get_user(self, *, team_id: str, user_id: str) -> UserGem | None:
        with self._engine.begin() as conn:
            row = conn.execute(
                select(user_gems)
                .join(teams, teams.c.id == user_gems.c.team_id)
                .where(teams.c.slack_team_id == team_id, user_gems.c.user_id == user_id)
            ).first()
            return _user(row) if row is not None else None

    def assign_group(self, *, team_id: str, user_id: str, group_id: int | None) -> UserGem:
        with self._engine.begin() as conn:
            team_pk = self._team_pk(conn, team_id)
            if group_id is not None:
                owner = conn.execute(select(groups.c.team_id).where(groups.c.id == group_id)).scalar()
                if owner != team_pk:
                    raise LookupError(f"unknown group {group_id} for team {team_id}")
            row = self._user_row(conn, team_pk, user_id)
            if row is None:
                conn.execute(
                    user_gems.insert().values(
                        user_id=user_id,
                        team_id=team_pk,
                        group_id=group_id,
                        is_admin=False,
                        current_gems=0,
                        total_gems=0,
                    )
                )
            else:
                conn.execute(user_gems.update().where(user_gems.c.id == row.id).values(group_id=group_id))
            return _user(self._user_row(conn, team_pk, user_id))

    def list_group_members(self, *, team_id: str, group_id: int) -> Records[UserGem]:
        with self._engine.begin() as conn:
            rows = conn.execute(
                select(user_gems)
                .join(teams, teams.c.id == user_gems.c.team_id)
                .where(teams.c.slack_team_id == team_id, user_gems.c.group_id == group_id)
                .order_by(user_gems.c.id)
            ).all()
            return Records(_user(r) for r in rows)

    def set_admin(self, *, team_id: str, user_id: str, is_admin: bool) -> bool:
        with self._engine.begin() as conn:
            row = self._team_row(conn, team_id)
            if row is None:
                return False
            result = conn.execute(
                user_gems.update()
                .where(user_gems.c.team_id == row.id, user_gems.c.user_id == user_id)
                .values(is_admin=is_admin)
            )
            return result.rowcount > 0

    def list_admins(self, *, team_id: str) -> Records[UserGem]:
        with self._engine.begin() as conn:
            rows = conn.execute(
                select(user_gems)
                .join(teams, teams.c.id == user_gems.c.team_id)
                .where(teams.c.slack_team_id == team_id, user_gems.c.is_admin.is_(True))
                .order_by(user_gems.c.id)
            ).all()
            return Records(_user(r) for r in rows)

    def count_admins(self, *, team_id: str) -> int:
        with self._engine.begin() as conn:
            return int(
                conn.execute(
                    select(func.count(user_gems.c.id))
                    .join(teams, teams.c.id == user_gems.c.team_id)
                    .where(teams.c.slack_team_id == team_id, user_gems.c.is_admin.is_(True))
                ).scalar()
                or 0
            )

    def award_gem(
        self,
        *,
        team_id: str,
        giver_id: str,
        receiver_id: str,
        reason: str,
        at: datetime | None = None,
    ) -> GemTransaction:
        ts = _to_db(at)
        with self._engine.begin() as conn:
            team_pk = self._team_pk(conn, team_id)
            # increment evaluated in the database
            result = conn.execute(
                user_gems.update()
                .where(user_gems.c.team_id == team_pk, user_gems.c.user_id == receiver_id)
                .values(
                    current_gems=user_gems.c.current_gems + 1,
                    total_gems=user_gems.c.total_gems + 1,
                )
            )
            if result.rowcount == 0:
                raise LookupError(f"receiver {receiver_id} is not configured for team {team_id}")
            inserted = conn.execute(
                gem_transactions.insert().values(
                    gem_giver=giver_id,
                    gem_receiver=receiver_id,
                    team_id=team_pk,
                    reason=reason[:MAX_REASON],
                    timestamp=ts,
                )
            )
            return GemTransaction(
                id=inserted.inserted_primary_key[0],
                gem_giver=giver_id,
                gem_receiver=receiver_id,
                team_id=team_pk,
                reason=reason[:MAX_REASON],
                timestamp=_from_db(ts),
            )

    def start_period(self, *, team_id: str, at: datetime | None = None) -> GemPeriod:
        ts = _to_db(at)
        with self._engine.begin() as conn:
            team_pk = self._team_pk(conn, team_id)
            inserted = conn.execute(gem_periods.insert().values(team_id=team_pk, reset_time=ts))
            conn.execute(user_gems.update().where(user_gems.c.team_id == team_pk).values(current_gems=0))
            return GemPeriod(id=inserted.inserted_primary_key[0], team_id=team_pk, reset_time=_from_db(ts))

    def ranked_users(
        self,
        *,
        team_id: str,
        group_id: int,
        by: str = "current",
        limit: int | None = None,
    ) -> Records[UserGem]:
        col = user_gems.c[_rank_attr(by)]
        stmt = (
            select(user_gems)
            .join(teams, teams.c.id == user_gems.c.team_id)
            .where(teams.c.slack_team_id == team_id, user_gems.c.group_id == group_id, col > 0)
            .order_by(col.desc(), user_gems.c.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._engine.begin() as conn:
            return Records(_user(r) for r in conn.execute(stmt).all())

    def recent_reasons(self, *, team_id: str, user_id: str, periods: int = 2) -> Records[GemTransaction]:
        with self._engine.begin() as conn:
            row = self._team_row(conn, team_id)
            if row is None:
                return Records()
            since = conn.execute(
                select(gem_periods.c.reset_time)
                .where(gem_periods.c.team_id == row.id)
                .order_by(gem_periods.c.reset_time.desc())
                .limit(1)
                .offset(periods - 1)
            ).scalar()
            stmt = select(gem_transactions).where(
                gem_transactions.c.team_id == row.id,
                gem_transactions.c.gem_receiver == user_id,
            )
            if since is not None:
                stmt = stmt.where(gem_transactions.c.timestamp > since)
            stmt = stmt.order_by(gem_transactions.c.timestamp.desc(), gem_transactions.c.id.desc())
            return Records(_transaction(r) for r in conn.execute(stmt).all())
