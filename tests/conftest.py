from __future__ import annotations

from typing import Any, Iterator

import pytest

from gemification.chat import Chat
from gemification.dialogs.base import SessionRegistry
from gemification.gems.sql import SqlGemStore
from gemification.gems.store import GemStore, InMemoryGemStore
from gemification.roster import Member, RosterCache
from gemification.services import TeamContext

TEAM = "T1"

MEMBERS = [
    Member(id="U1", name="alice", real_name="Alice Admin"),
    Member(id="B1", name="deploybot", is_bot=True),
    Member(id="U2", name="bob", real_name="Bob Builder"),
    Member(id="USLACKBOT", name="slackbot"),
    Member(id="U3", name="carol"),
    Member(id="U4", name="dave", real_name="Dave New"),
]


class FakeChat(Chat):
    def __init__(self, members: list[Member] | None = None, channels: dict[str, list[str]] | None = None) -> None:
        self.members = list(MEMBERS if members is None else members)
        self.channels = dict(channels or {})
        self.dms: list[tuple[str, str]] = []
        self.posts: list[tuple[str, str]] = []
        self.prompts: list[tuple[str, list[dict[str, Any]]]] = []
        self.reactions: list[tuple[str, str, str]] = []
        self.roster_fetches = 0

    def send_dm(self, user_id: str, text: str, *, blocks: list[dict[str, Any]] | None = None) -> None:
        self.dms.append((user_id, text))
        if blocks:
            self.prompts.append((user_id, blocks))

    def post(self, channel_id: str, text: str, *, blocks: list[dict[str, Any]] | None = None) -> None:
        self.posts.append((channel_id, text))

    def channel_members(self, channel_id: str) -> list[str]:
        return list(self.channels.get(channel_id, []))

    def team_members(self) -> list[Member]:
        self.roster_fetches += 1
        return list(self.members)

    def add_reaction(self, channel_id: str, ts: str, name: str) -> None:
        self.reactions.append((channel_id, ts, name))

    # helpers for assertions

    def dms_to(self, user_id: str) -> list[str]:
        return [text for uid, text in self.dms if uid == user_id]

    def posts_to(self, channel_id: str) -> list[str]:
        return [text for cid, text in self.posts if cid == channel_id]

    def buttons(self, user_id: str) -> dict[str, str]:
        """Label -> value of the last button prompt sent to `user_id`."""
        for uid, blocks in reversed(self.prompts):
            if uid != user_id:
                continue
            for block in blocks:
                if block.get("type") == "actions":
                    return {el["text"]["text"]: el["value"] for el in block["elements"]}
        raise AssertionError(f"no button prompt was sent to {user_id}")


@pytest.fixture(params=["memory", "sqlite"])
def store(request) -> Iterator[GemStore]:  # noqa: ANN001
    if request.param == "memory":
        yield InMemoryGemStore()
        return
    s = SqlGemStore("sqlite://")
    yield s
    s.engine.dispose()


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat(channels={"C1": ["U1", "U2", "U3"]})


@pytest.fixture
def ctx(store: GemStore, chat: FakeChat) -> TeamContext:
    return TeamContext(
        team_id=TEAM,
        chat=chat,
        store=store,
        roster_cache=RosterCache(),
        sessions=SessionRegistry(),
    )


def configure_team(store: GemStore) -> dict[str, int]:
    """U1 (admin) and U2 in Backend, U3 in Frontend; U4 is not configured."""
    store.init_team(team_id=TEAM, installer_id="U1")
    groups = {g.group_name: g.id for g in store.create_groups(team_id=TEAM, names=["backend", "frontend"])}
    store.assign_group(team_id=TEAM, user_id="U1", group_id=groups["Backend"])
    store.assign_group(team_id=TEAM, user_id="U2", group_id=groups["Backend"])
    store.assign_group(team_id=TEAM, user_id="U3", group_id=groups["Frontend"])
    store.mark_team_configured(team_id=TEAM)
    return groups


def click(ctx: TeamContext, chat: FakeChat, user_id: str, label: str) -> str | None:
    value = chat.buttons(user_id)[label]
    return ctx.sessions.feed_choice(ctx, user_id=user_id, raw_value=value)


def say(ctx: TeamContext, user_id: str, text: str) -> bool:
    return ctx.sessions.feed_text(ctx, user_id=user_id, text=text)
