from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from .roster import Member

CHOICE_ACTION_PREFIX = "dialog_choice_"


@dataclass(frozen=True)
class Option:
    value: str
    label: str
    # text of a Slack "Are you sure?" confirmation, shown before the click is sent
    confirm: str | None = None


def encode_choice(prompt_id: str, value: str) -> str:
    return f"{prompt_id}:{value}"


def decode_choice(raw: str | None) -> tuple[str, str] | None:
    prompt_id, sep, value = (raw or "").partition(":")
    if not sep or not prompt_id:
        return None
    return prompt_id, value


def button_blocks(*, text: str, title: str, prompt_id: str, options: list[Option]) -> list[dict[str, Any]]:
    elements: list[dict[str, Any]] = []
    for i, opt in enumerate(options):
        el: dict[str, Any] = {
            "type": "button",
            "action_id": f"{CHOICE_ACTION_PREFIX}{i}",
            "text": {"type": "plain_text", "text": opt.label},
            "value": encode_choice(prompt_id, opt.value),
        }
        if opt.confirm:
            el["confirm"] = {
                "title": {"type": "plain_text", "text": "Are you sure?"},
                "text": {"type": "mrkdwn", "text": opt.confirm},
                "confirm": {"type": "plain_text", "text": "Yes"},
                "deny": {"type": "plain_text", "text": "No"},
            }
        elements.append(el)
    return [
        {"type": "section", "text": {"type": "mrkdwn", "text": text}},
        {"type": "section", "text": {"type": "mrkdwn", "text": f"*{title}*"}},
        {"type": "actions", "block_id": f"prompt_{prompt_id}", "elements": elements},
    ]


class Chat(ABC):
    """The slice of the Slack Web API the bot talks through, bound to one workspace."""

    @abstractmethod
    def send_dm(self, user_id: str, text: str, *, blocks: list[dict[str, Any]] | None = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def post(self, channel_id: str, text: str, *, blocks: list[dict[str, Any]] | None = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def channel_members(self, channel_id: str) -> list[str]:
        raise NotImplementedError

    @abstractmethod
    def team_members(self) -> list[Member]:
        raise NotImplementedError

    @abstractmethod
    def add_reaction(self, channel_id: str, ts: str, name: str) -> None:
        raise NotImplementedError


class SlackChat(Chat):
    def __init__(self, client) -> None:  # noqa: ANN001
        # slack_sdk.WebClient; errors surface as SlackApiError
        self._client = client

    def _open_dm(self, user_id: str) -> str:
        resp = self._client.conversations_open(users=user_id)
        return str(resp["channel"]["id"])

    def send_dm(self, user_id: str, text: str, *, blocks: list[dict[str, Any]] | None = None) -> None:
        self.post(self._open_dm(user_id), text, blocks=blocks)

    def post(self, channel_id: str, text: str, *, blocks: list[dict[str, Any]] | None = None) -> None:
        kwargs: dict[str, Any] = {"channel": channel_id, "text": text}
        if blocks:
            kwargs["blocks"] = blocks
        self._client.chat_postMessage(**kwargs)

    def channel_members(self, channel_id: str) -> list[str]:
        out: list[str] = []
        cursor = None
        while True:
            resp = self._client.conversations_members(channel=channel_id, cursor=cursor, limit=200)
            out.extend(resp.get("members") or [])
            cursor = (resp.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return out

    def team_members(self) -> list[Member]:
        out: list[Member] = []
        cursor = None
        while True:
            resp = self._client.users_list(cursor=cursor, limit=200)
            out.extend(Member.from_api(m) for m in (resp.get("members") or []))
            cursor = (resp.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return out

    def add_reaction(self, channel_id: str, ts: str, name: str) -> None:
        self._client.reactions_add(channel=channel_id, timestamp=ts, name=name)
