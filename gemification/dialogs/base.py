from __future__ import annotations

import threading
import uuid
from typing import TYPE_CHECKING

from ..chat import Option, button_blocks, decode_choice
from ..gems.mentions import parse_mention
from ..roster import Member

if TYPE_CHECKING:
    from ..services import TeamContext

CANCELLED = "Cancel.. got it!"
BUSY = (
    "You already have a conversation in progress with Gemification. "
    "Finish it first, or type `cancel` to quit it."
)
PICK_A_BUTTON = "Please choose one of the buttons above, or type `cancel` to quit."
INVALID_USERNAME = "The username you entered isn't valid."


def is_keyword(text: str | None, keyword: str) -> bool:
    return (text or "").strip().lower() == keyword


def resolve_member(ctx: TeamContext, text: str | None) -> Member | None:
    """The roster member mentioned first in `text`, if any."""
    return ctx.member(parse_mention(text))


class Dialog:
    """
    One multi-turn conversation between the bot and a user, driven step by step.

    A dialog is either waiting for typed text (`prompt_id is None`) or for a
    click on the button prompt identified by `prompt_id`. Subclasses keep
    their own state enum and per-state context; the registry serializes every
    step of one dialog through `lock`.
    """

    kind = "dialog"

    def __init__(self, *, team_id: str, user_id: str) -> None:
        self.team_id = team_id
        self.user_id = user_id
        self.done = False
        self.prompt_id: str | None = None
        self.lock = threading.Lock()

    @property
    def key(self) -> tuple[str, str]:
        return (self.team_id, self.user_id)

    def start(self, ctx: TeamContext) -> None:
        raise NotImplementedError

    def on_text(self, ctx: TeamContext, text: str) -> None:
        raise NotImplementedError

    def on_choice(self, ctx: TeamContext, value: str) -> str:
        """Applies a button click and returns the line that replaces the clicked prompt."""
        raise NotImplementedError

    def handle_text(self, ctx: TeamContext, text: str) -> None:
        if is_keyword(text, "cancel"):
            self.say(ctx, CANCELLED)
            self.finish()
            return
        if self.prompt_id is not None:
            self.say(ctx, PICK_A_BUTTON)
            return
        self.on_text(ctx, text)

    # helpers

    def log(self, msg: str) -> None:
        print(f"[dialog] {self.kind} team={self.team_id} user={self.user_id} {msg}")

    def say(self, ctx: TeamContext, text: str) -> None:
        ctx.chat.send_dm(self.user_id, text)

    def ask(self, ctx: TeamContext, text: str) -> None:
        self.prompt_id = None
        self.say(ctx, text)

    def ask_buttons(self, ctx: TeamContext, *, text: str, title: str, options: list[Option]) -> None:
        self.prompt_id = uuid.uuid4().hex[:12]
        blocks = button_blocks(text=text, title=title, prompt_id=self.prompt_id, options=options)
        ctx.chat.send_dm(self.user_id, f"{text}\n{title}", blocks=blocks)

    def finish(self) -> None:
        self.done = True
        self.prompt_id = None
        self.log("finished")


class SessionRegistry:
    """At most one live dialog per (team, user)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[tuple[str, str], Dialog] = {}

    def active(self, team_id: str, user_id: str) -> Dialog | None:
        with self._lock:
            d = self._sessions.get((team_id, user_id))
            if d is not None and d.done:
                del self._sessions[(team_id, user_id)]
                return None
            return d

    def begin(self, ctx: TeamContext, dialog: Dialog) -> bool:
        with self._lock:
            cur = self._sessions.get(dialog.key)
            if cur is not None and not cur.done:
                print(f"[dialog] refused {dialog.kind} team={dialog.team_id} user={dialog.user_id}: {cur.kind} is active")
                return False
            self._sessions[dialog.key] = dialog
        dialog.log("started")
        self._step(dialog, lambda: dialog.start(ctx))
        return True

    def feed_text(self, ctx: TeamContext, *, user_id: str, text: str) -> bool:
        dialog = self.active(ctx.team_id, user_id)
        if dialog is None:
            return False
        self._step(dialog, lambda: dialog.handle_text(ctx, text))
        return True

    def feed_choice(self, ctx: TeamContext, *, user_id: str, raw_value: str | None) -> str | None:
        """Routes a button click. Returns None when the clicked prompt is no longer current."""
        decoded = decode_choice(raw_value)
        dialog = self.active(ctx.team_id, user_id)
        if decoded is None or dialog is None:
            return None
        prompt_id, value = decoded
        outcome: list[str] = []

        def _apply() -> None:
            # checked under the dialog lock so a double click applies once
            if dialog.done or dialog.prompt_id != prompt_id:
                return
            dialog.prompt_id = None
            outcome.append(dialog.on_choice(ctx, value))

        self._step(dialog, _apply)
        return outcome[0] if outcome else None

    def end(self, team_id: str, user_id: str) -> None:
        with self._lock:
            self._sessions.pop((team_id, user_id), None)

    def _step(self, dialog: Dialog, fn) -> None:  # noqa: ANN001
        try:
            with dialog.lock:
                fn()
        except Exception:
            # a failed step leaves the dialog in an unknown state
            dialog.done = True
            self._reap(dialog)
            raise
        self._reap(dialog)

    def _reap(self, dialog: Dialog) -> None:
        if not dialog.done:
            return
        with self._lock:
            if self._sessions.get(dialog.key) is dialog:
                del self._sessions[dialog.key]
