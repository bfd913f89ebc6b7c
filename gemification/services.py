from __future__ import annotations

from dataclasses import dataclass

from .bots import BotTracker
from .chat import Chat
from .config import Settings
from .dialogs.base import SessionRegistry
from .gems.auth import Guard
from .gems.store import GemStore
from .roster import Member, RosterCache


@dataclass
class TeamContext:
    """Everything a handler needs to act on behalf of one workspace."""

    team_id: str
    chat: Chat
    store: GemStore
    roster_cache: RosterCache
    sessions: SessionRegistry
    timezone: str = "UTC"
    reaction_user_ids: tuple[str, ...] = ()
    reaction_emoji: str = "cow-hat"

    @property
    def guard(self) -> Guard:
        return Guard(self.store, self.team_id)

    def roster(self) -> list[Member]:
        return self.roster_cache.get(self.team_id, self.chat.team_members)

    def member(self, user_id: str | None) -> Member | None:
        if not user_id:
            return None
        for m in self.roster():
            if m.id == user_id:
                return m
        return None

    def display_name(self, user_id: str) -> str:
        m = self.member(user_id)
        return m.name if m else user_id


@dataclass
class Services:
    settings: Settings
    store: GemStore
    roster_cache: RosterCache
    sessions: SessionRegistry
    bots: BotTracker

    def context(self, *, team_id: str, chat: Chat) -> TeamContext:
        return TeamContext(
            team_id=team_id,
            chat=chat,
            store=self.store,
            roster_cache=self.roster_cache,
            sessions=self.sessions,
            timezone=self.settings.timezone,
            reaction_user_ids=self.settings.reaction_user_ids,
            reaction_emoji=self.settings.reaction_emoji,
        )


def build_services(settings: Settings, store: GemStore) -> Services:
    return Services(
        settings=settings,
        store=store,
        roster_cache=RosterCache(settings.roster_ttl_seconds),
        sessions=SessionRegistry(),
        bots=BotTracker(),
    )
