from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from ..chat import Option
from ..gems.mentions import mention
from ..gems.models import MAX_GROUP_NAME, MAX_GROUPS, Group, normalize_group_name
from ..roster import Member
from .base import PICK_A_BUTTON, Dialog, is_keyword

if TYPE_CHECKING:
    from ..services import TeamContext

ALREADY_CONFIGURED = "This team is already configured with Gemification."
INTRO = (
    "Let's begin by configuring your Slack team into groups.",
    "A group is a subset of your Slack team. For example, a programming Slack team "
    "could be divided into front-end and back-end groups.",
    "Each group will have their own Gemification leaderboard.",
)
GROUP_PROMPT = (
    "One at a time, please enter a name for a new group. "
    f"A group can be up to {MAX_GROUP_NAME} characters long. You may have up to {MAX_GROUPS} groups. "
    "Type `done` to finish and finalize the groups or `start over` to start over."
)
FINISHED = (
    "The last step is to /invite me to the channel you'll be using for Gemification. "
    "Without that, I won't be able to do anything.",
    "For a full list of commands and explaination on how to use Gemification, "
    "type `help` in a direct message to Gemification.",
)
IGNORE = "ignore"


class Step(Enum):
    GROUPS = "groups"
    CONFIRM = "confirm"
    ASSIGN = "assign"


class TeamSetupDialog(Dialog):
    """
    Team bootstrap: collect group names, confirm them, then walk the roster
    assigning every human member to a group (or to none).

    Assignment walks `members` with an explicit cursor; each click advances it
    by one and the dialog ends after the last member.
    """

    kind = "team_setup"

    def __init__(self, *, team_id: str, user_id: str) -> None:
        super().__init__(team_id=team_id, user_id=user_id)
        self.step = Step.GROUPS
        self.pending: list[str] = []
        self.groups: list[Group] = []
        self.members: list[Member] = []
        self.cursor = 0

    def start(self, ctx: TeamContext) -> None:
        if ctx.store.is_team_configured(team_id=self.team_id):
            self.log("team already configured")
            self.say(ctx, ALREADY_CONFIGURED)
            self.finish()
            return
        if not ctx.store.list_groups(team_id=self.team_id).is_empty():
            # groups were saved but assignment never finished
            self.log("groups exist, resuming at assignment")
            self._begin_assignment(ctx)
            return
        self._begin_groups(ctx)

    # groups

    def _begin_groups(self, ctx: TeamContext) -> None:
        self.step = Step.GROUPS
        self.pending = []
        for line in INTRO:
            self.say(ctx, line)
        self.ask(ctx, GROUP_PROMPT)

    def on_text(self, ctx: TeamContext, text: str) -> None:
        if self.step is not Step.GROUPS:
            self.say(ctx, PICK_A_BUTTON)
            return
        if is_keyword(text, "done"):
            if not self.pending:
                self.log("done typed before any group")
                self.say(ctx, "Please enter at least one group for your Slack team.")
                self.ask(ctx, GROUP_PROMPT)
                return
            self._confirm(ctx)
            return
        if is_keyword(text, "start over"):
            self.log("starting over")
            self._begin_groups(ctx)
            return

        group = normalize_group_name(text)
        if not group:
            self.ask(ctx, GROUP_PROMPT)
            return
        if group in self.pending:
            self.say(ctx, f"{group} was already added as a group.")
        elif len(self.pending) == MAX_GROUPS:
            self.say(ctx, f"You may only have {MAX_GROUPS} groups set for Gemification. Type `done` to move to the next step.")
        elif len(group) > MAX_GROUP_NAME:
            self.say(ctx, f"A group must be {MAX_GROUP_NAME} characters or less.")
        else:
            self.pending.append(group)
            self.log(f"added group {group!r}")
            self.say(ctx, f"{group} was added as a group")
        self.ask(ctx, GROUP_PROMPT)

    def _confirm(self, ctx: TeamContext) -> None:
        self.step = Step.CONFIRM
        joined = ", ".join(self.pending)
        self.ask_buttons(
            ctx,
            text=f"Here are the groups you have added: {joined}",
            title="Do you wish to set these groups for your team?",
            options=[
                Option("yes", "Yes", confirm=f"This will set these groups ({joined}) for your team!"),
                Option("no", "No"),
            ],
        )

    def on_choice(self, ctx: TeamContext, value: str) -> str:
        if self.step is Step.CONFIRM:
            return self._on_confirm(ctx, value)
        if self.step is Step.ASSIGN:
            return self._on_assign(ctx, value)
        raise ValueError(f"unexpected choice in step {self.step}")

    def _on_confirm(self, ctx: TeamContext, value: str) -> str:
        joined = ", ".join(self.pending)
        if value == "yes":
            ctx.store.create_groups(team_id=self.team_id, names=self.pending)
            self.log(f"groups {joined} set")
            self.say(ctx, "Now that you have set up groups, let's assign the people to these groups.")
            self._begin_assignment(ctx)
            return f"Nice work! The groups {joined} are set to your team! :tada:"
        self.say(ctx, "Ok, let's start over.")
        self._begin_groups(ctx)
        return "These groups will not be set for your team."

    # assignment

    def _begin_assignment(self, ctx: TeamContext) -> None:
        self.step = Step.ASSIGN
        self.groups = list(ctx.store.list_groups(team_id=self.team_id))
        self.members = ctx.roster()
        self.cursor = 0
        self._prompt_member(ctx)

    def _prompt_member(self, ctx: TeamContext) -> None:
        while self.cursor < len(self.members) and not self.members[self.cursor].is_human:
            self.log(f"skipping bot {self.members[self.cursor].id}")
            self.cursor += 1
        if self.cursor >= len(self.members):
            self._finish_setup(ctx)
            return
        m = self.members[self.cursor]
        options = [Option(str(g.id), g.group_name) for g in self.groups]
        options.append(Option(IGNORE, "Ignore"))
        self.ask_buttons(
            ctx,
            text=f"Let's assign {m.full_name} to a group.",
            title=f"Which group would you like to set {m.full_name} to?",
            options=options,
        )

    def _on_assign(self, ctx: TeamContext, value: str) -> str:
        m = self.members[self.cursor]
        if value == IGNORE:
            if ctx.store.get_user(team_id=self.team_id, user_id=m.id) is None:
                ctx.store.assign_group(team_id=self.team_id, user_id=m.id, group_id=None)
            self.log(f"{m.id} left without a group")
            outcome = f"Ok, you chose to not set {mention(m.id)} to a group."
        else:
            group = next((g for g in self.groups if str(g.id) == value), None)
            if group is None:
                self._prompt_member(ctx)
                return "That group no longer exists."
            ctx.store.assign_group(team_id=self.team_id, user_id=m.id, group_id=group.id)
            self.log(f"{m.id} set to {group.group_name}")
            outcome = f"Perfect! {mention(m.id)} is now set to the {group.group_name} group."
        self.cursor += 1
        self._prompt_member(ctx)
        return outcome

    def _finish_setup(self, ctx: TeamContext) -> None:
        ctx.store.mark_team_configured(team_id=self.team_id)
        self.log("team configuration finished")
        for line in FINISHED:
            self.say(ctx, line)
        self.finish()
