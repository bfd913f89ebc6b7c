from __future__ import annotations

from typing import TYPE_CHECKING

from ..chat import Option
from ..gems.mentions import mention
from ..gems.models import Group
from ..roster import Member
from .base import INVALID_USERNAME, Dialog, resolve_member

if TYPE_CHECKING:
    from ..services import TeamContext

PROMPT = "Who would you like to reconfigure? Or type `cancel` to quit."
IS_BOT = "The user you entered is a bot and cannot be configured for Gemification."
REMOVE = "remove"


class ReconfigureUserDialog(Dialog):
    kind = "reconfigure_user"

    def __init__(self, *, team_id: str, user_id: str) -> None:
        super().__init__(team_id=team_id, user_id=user_id)
        self.target: Member | None = None
        self.groups: list[Group] = []

    def start(self, ctx: TeamContext) -> None:
        self.ask(ctx, PROMPT)

    def on_text(self, ctx: TeamContext, text: str) -> None:
        target = resolve_member(ctx, text)
        if target is None:
            self.say(ctx, INVALID_USERNAME)
            self.ask(ctx, PROMPT)
            return
        if not target.is_human:
            self.say(ctx, IS_BOT)
            self.ask(ctx, PROMPT)
            return
        self.target = target
        self.groups = list(ctx.store.list_groups(team_id=self.team_id))

        row = ctx.store.get_user(team_id=self.team_id, user_id=target.id)
        current = None
        if row is not None and row.group_id is not None:
            current = next((g for g in self.groups if g.id == row.group_id), None)
        if current is not None:
            where = f"This person is currently set to {current.group_name} group."
        else:
            where = "This person isn't currently assigned to a group."

        options = [Option(str(g.id), g.group_name) for g in self.groups]
        options.append(Option(REMOVE, "Remove From Group"))
        self.ask_buttons(
            ctx,
            text=f"Let's reconfigure {mention(target.id)}. {where}",
            title=f"Which group would you like to set {mention(target.id)} to?",
            options=options,
        )

    def on_choice(self, ctx: TeamContext, value: str) -> str:
        assert self.target is not None
        who = mention(self.target.id)
        if value == REMOVE:
            ctx.store.assign_group(team_id=self.team_id, user_id=self.target.id, group_id=None)
            self.log(f"{self.target.id} removed from all groups")
            ctx.chat.send_dm(self.target.id, "This is a notice that you have been removed from Gemification groups. :grin:")
            self.finish()
            return f"Perfect! {who} is now removed from all Gemification groups."

        group = next((g for g in self.groups if str(g.id) == value), None)
        if group is None:
            self.finish()
            return "That group no longer exists."
        ctx.store.assign_group(team_id=self.team_id, user_id=self.target.id, group_id=group.id)
        self.log(f"{self.target.id} set to {group.group_name}")
        ctx.chat.send_dm(
            self.target.id,
            f"This is a notice that you have been moved to the {group.group_name} Gemification group. :grin:",
        )
        self.finish()
        return f"Perfect! {who} is now set to the {group.group_name} group."
