from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from ..chat import Option
from ..gems.mentions import mention
from ..gems.reports import admins_message
from ..roster import Member
from .base import INVALID_USERNAME, Dialog, is_keyword, resolve_member

if TYPE_CHECKING:
    from ..services import TeamContext

ADD_PROMPT = "Who would you like to add as an admin? Or type `cancel` to quit."
REMOVE_PROMPT = "Who would you like to remove as an admin? Type `list` to show current admins or `cancel` to quit."
TARGET_NOT_CONFIGURED = (
    "The user you are trying to set as an admin is not configured with Gemification. "
    "If you believe this is an error, speak to a Gemification admin and have them "
    "configure the user you are trying to set as an admin."
)
LAST_ADMIN = (
    "You are trying to remove yourself, but you are the last admin in this channel. "
    "Please add a new admin before removing yourself."
)


class Step(Enum):
    TARGET = "target"
    CONFIRM = "confirm"


class _AdminDialog(Dialog):
    prompt = ""

    def __init__(self, *, team_id: str, user_id: str) -> None:
        super().__init__(team_id=team_id, user_id=user_id)
        self.step = Step.TARGET
        self.target: Member | None = None

    def start(self, ctx: TeamContext) -> None:
        self.ask(ctx, self.prompt)

    def on_text(self, ctx: TeamContext, text: str) -> None:
        target = resolve_member(ctx, text)
        if target is None:
            self.say(ctx, INVALID_USERNAME)
            self.ask(ctx, self.prompt)
            return
        self.target = target
        self.check_target(ctx, target)

    def check_target(self, ctx: TeamContext, target: Member) -> None:
        raise NotImplementedError


class AddAdminDialog(_AdminDialog):
    kind = "add_admin"
    prompt = ADD_PROMPT

    def check_target(self, ctx: TeamContext, target: Member) -> None:
        row = ctx.store.get_user(team_id=self.team_id, user_id=target.id)
        if row is None:
            self.say(ctx, TARGET_NOT_CONFIGURED)
            self.finish()
            return
        if row.is_admin:
            self.say(ctx, f"{mention(target.id)} is already an admin user in gemification.")
            self.finish()
            return
        self.step = Step.CONFIRM
        self.ask_buttons(
            ctx,
            text=f"Adding {mention(target.id)}",
            title=f"Are you sure you want to set {mention(target.id)} as an admin?",
            options=[
                Option("yes", "Yes", confirm=f"This will add {target.name} as an administrator!"),
                Option("no", "No"),
            ],
        )

    def on_choice(self, ctx: TeamContext, value: str) -> str:
        assert self.target is not None
        who = mention(self.target.id)
        self.finish()
        if value != "yes":
            return f"{who} will not be set as an admin."
        ctx.store.set_admin(team_id=self.team_id, user_id=self.target.id, is_admin=True)
        self.log(f"{self.target.id} is now an admin")
        ctx.chat.send_dm(self.target.id, "Hey there, good looking. :wink: You have been set as an admin.")
        return f"{who} is now set as an admin."


class RemoveAdminDialog(_AdminDialog):
    kind = "remove_admin"
    prompt = REMOVE_PROMPT

    def on_text(self, ctx: TeamContext, text: str) -> None:
        if is_keyword(text, "list"):
            self.say(ctx, admins_message(ctx))
            self.ask(ctx, self.prompt)
            return
        super().on_text(ctx, text)

    def check_target(self, ctx: TeamContext, target: Member) -> None:
        row = ctx.store.get_user(team_id=self.team_id, user_id=target.id)
        if row is None or not row.is_admin:
            self.say(ctx, f"{mention(target.id)} is currently not an admin.")
            self.finish()
            return
        if ctx.store.count_admins(team_id=self.team_id) <= 1:
            self.say(ctx, LAST_ADMIN)
            self.finish()
            return
        self.step = Step.CONFIRM
        self.ask_buttons(
            ctx,
            text=f"Removing {mention(target.id)}",
            title=f"Are you sure you want to remove {mention(target.id)} as an admin?",
            options=[
                Option("yes", "Yes", confirm=f"This will remove {target.name} as an administrator!"),
                Option("no", "No"),
            ],
        )

    def on_choice(self, ctx: TeamContext, value: str) -> str:
        assert self.target is not None
        who = mention(self.target.id)
        self.finish()
        if value != "yes":
            return f"{who} will not be removed from being an admin."
        # another admin may have been removed while the buttons were up
        if ctx.store.count_admins(team_id=self.team_id) <= 1:
            return LAST_ADMIN
        ctx.store.set_admin(team_id=self.team_id, user_id=self.target.id, is_admin=False)
        self.log(f"{self.target.id} is no longer an admin")
        ctx.chat.send_dm(self.target.id, "You have been removed as an admin.")
        return f"{who} is now removed from being an admin."
