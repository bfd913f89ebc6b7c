from __future__ import annotations

import pytest
from slack_sdk.errors import SlackApiError

from gemification.bots import BotTracker, TeamBot


class Connector:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def __call__(self, token: str) -> TeamBot:
        self.calls.append(token)
        team = token.split("-")[-1]
        return TeamBot(token=token, team_id=team, bot_user_id=f"UBOT{team}", client=object())


def test_spawn_connects_once_per_token():
    connect = Connector()
    bots = BotTracker(connect=connect)
    bot, created = bots.spawn("xoxb-T1")
    again, created_again = bots.spawn("xoxb-T1")
    assert created and not created_again
    assert again is bot
    bots.spawn("xoxb-T2")
    assert connect.calls == ["xoxb-T1", "xoxb-T2"]
    assert len(bots) == 2
    assert bots.for_team("T2").bot_user_id == "UBOTT2"


def test_dropped_token_reconnects():
    connect = Connector()
    bots = BotTracker(connect=connect)
    bots.spawn("xoxb-T1")
    assert bots.drop("xoxb-T1") is not None
    assert not bots.is_tracked("xoxb-T1")
    _, created = bots.spawn("xoxb-T1")
    assert created
    assert connect.calls == ["xoxb-T1", "xoxb-T1"]


def test_watch_drops_dead_tokens():
    bots = BotTracker(connect=Connector())
    bots.spawn("xoxb-T1")
    with pytest.raises(SlackApiError):
        with bots.watch("xoxb-T1"):
            raise SlackApiError("revoked", {"ok": False, "error": "invalid_auth"})
    assert not bots.is_tracked("xoxb-T1")


def test_watch_keeps_token_on_other_errors():
    bots = BotTracker(connect=Connector())
    bots.spawn("xoxb-T1")
    with pytest.raises(SlackApiError):
        with bots.watch("xoxb-T1"):
            raise SlackApiError("nope", {"ok": False, "error": "channel_not_found"})
    with pytest.raises(RuntimeError):
        with bots.watch("xoxb-T1"):
            raise RuntimeError("boom")
    assert bots.is_tracked("xoxb-T1")
