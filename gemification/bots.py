from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

# auth errors after which a token will never work again
DEAD_TOKEN_ERRORS = frozenset({"invalid_auth", "token_revoked", "account_inactive", "not_authed"})


@dataclass(frozen=True)
class TeamBot:
    token: str
    team_id: str
    bot_user_id: str
    client: WebClient

    @classmethod
    def connect(cls, token: str) -> TeamBot:
        client = WebClient(token=token)
        resp = client.auth_test()
        return cls(
            token=token,
            team_id=str(resp["team_id"]),
            bot_user_id=str(resp["user_id"]),
            client=client,
        )


class BotTracker:
    """
    Live bot connections keyed by bot token, at most one per token.

    `spawn` connects only when the token is not already tracked; `drop` forgets
    a connection so the next `spawn` reconnects.
    """

    def __init__(self, connect: Callable[[str], TeamBot] = TeamBot.connect) -> None:
        self._connect = connect
        self._lock = threading.Lock()
        self._bots: dict[str, TeamBot] = {}

    def spawn(self, token: str) -> tuple[TeamBot, bool]:
        """Returns the bot for `token` and whether this call created it."""
        with self._lock:
            bot = self._bots.get(token)
            if bot is not None:
                return bot, False
            bot = self._connect(token)
            self._bots[token] = bot
        print(f"[bots] connected team={bot.team_id} bot_user={bot.bot_user_id}")
        return bot, True

    def drop(self, token: str) -> TeamBot | None:
        with self._lock:
            bot = self._bots.pop(token, None)
        if bot is not None:
            print(f"[bots] dropped team={bot.team_id}")
        return bot

    def is_tracked(self, token: str) -> bool:
        with self._lock:
            return token in self._bots

    def for_team(self, team_id: str) -> TeamBot | None:
        with self._lock:
            for bot in self._bots.values():
                if bot.team_id == team_id:
                    return bot
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._bots)

    @contextmanager
    def watch(self, token: str | None) -> Iterator[None]:
        """Drops the bot for `token` when the body fails with a dead-token error, then re-raises."""
        try:
            yield
        except SlackApiError as e:
            code = e.response.get("error") if e.response is not None else None
            if token and code in DEAD_TOKEN_ERRORS:
                print(f"[bots] token rejected by Slack ({code}); dropping connection")
                self.drop(token)
            raise
