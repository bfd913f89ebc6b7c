from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

from .dialogs import AddAdminDialog, ReconfigureUserDialog, RemoveAdminDialog, TeamSetupDialog
from .dialogs.base import BUSY, Dialog
from .gems import reports
from .gems.auth import NOT_CONFIGURED, admin_denied
from .gems.mentions import GEM_TOKEN
from .gems.service import give_gem

if TYPE_CHECKING:
    from .services import TeamContext


class Scope(Enum):
    AMBIENT = "ambient"
    DIRECT_MESSAGE = "direct_message"
    DIRECT_MENTION = "direct_mention"


class Access(Enum):
    CONFIGURED = "configured"
    ADMIN = "admin"


@dataclass(frozen=True)
class Event:
    scope: Scope
    team_id: str
    user_id: str
    channel_id: str
    text: str
    ts: str | None = None


Handler = Callable[["TeamContext", Event], list[str]]


@dataclass(frozen=True)
class Command:
    name: str
    triggers: tuple[str, ...]
    scopes: frozenset[Scope]
    access: Access
    handler: Handler
    # completes "Only admins can ..."
    denied: str = ""
    # triggers are keywords matched on word boundaries unless literal
    literal: bool = False

    def matches(self, event: Event) -> bool:
        if event.scope not in self.scopes:
            return False
        text = event.text or ""
        for t in self.triggers:
            if self.literal:
                if t in text:
                    return True
            elif re.search(rf"\b{re.escape(t)}\b", text, re.IGNORECASE):
                return True
        return False


def _gem(ctx: TeamContext, event: Event) -> list[str]:
    give_gem(ctx, giver_id=event.user_id, channel_id=event.channel_id, text=event.text)
    return []


def _dialog(factory: Callable[..., Dialog]) -> Handler:
    def start(ctx: TeamContext, event: Event) -> list[str]:
        dialog = factory(team_id=ctx.team_id, user_id=event.user_id)
        if not ctx.sessions.begin(ctx, dialog):
            return [BUSY]
        return []

    return start


def _help(ctx: TeamContext, event: Event) -> list[str]:
    return [reports.help_message(is_admin=ctx.guard.is_admin(event.user_id))]


DM = frozenset({Scope.DIRECT_MESSAGE})

COMMANDS: tuple[Command, ...] = (
    Command("gem", (GEM_TOKEN,), frozenset({Scope.AMBIENT}), Access.CONFIGURED, _gem, literal=True),
    Command(
        "leaderboard",
        ("leaderboard",),
        frozenset({Scope.DIRECT_MESSAGE, Scope.DIRECT_MENTION}),
        Access.CONFIGURED,
        lambda ctx, e: reports.leaderboard(ctx),
    ),
    Command(
        "clear gems", ("clear gems",), DM, Access.ADMIN,
        lambda ctx, e: [reports.clear_gems(ctx)],
        denied="reset the gem count",
    ),
    Command("add admin", ("add admin",), DM, Access.ADMIN, _dialog(AddAdminDialog), denied="add new admins"),
    Command(
        "list admins", ("list admins", "list admin"), DM, Access.CONFIGURED,
        lambda ctx, e: [reports.admins_message(ctx)],
    ),
    Command("remove admin", ("remove admin",), DM, Access.ADMIN, _dialog(RemoveAdminDialog), denied="remove admins"),
    Command(
        "get reasons", ("get reasons",), DM, Access.ADMIN,
        lambda ctx, e: [reports.reasons(ctx, e.text)],
        denied="get the reasons for Gemification leaders",
    ),
    Command(
        "team configuration", ("team configuration",), DM, Access.ADMIN,
        lambda ctx, e: [reports.team_configuration(ctx)],
        denied="view the team configuration",
    ),
    Command(
        "reconfigure user", ("reconfigure user",), DM, Access.ADMIN, _dialog(ReconfigureUserDialog),
        denied="reconfigure users",
    ),
    Command(
        "configure team", ("configure team",), DM, Access.ADMIN, _dialog(TeamSetupDialog),
        denied="configure the team",
    ),
    Command("help", ("help",), DM, Access.CONFIGURED, _help),
    Command(
        "all gems", ("all gems",), DM, Access.ADMIN,
        lambda ctx, e: reports.all_gems(ctx),
        denied="list all gems",
    ),
)


class Dispatcher:
    """
    Routes one inbound message to the first matching command.

    Direct messages from a user with a dialog in progress go to that dialog.
    Every command checks that the sender is configured; admin commands also
    check the admin flag.
    """

    def __init__(self, commands: tuple[Command, ...] = COMMANDS) -> None:
        self.commands = commands

    def match(self, event: Event) -> Command | None:
        for cmd in self.commands:
            if cmd.matches(event):
                return cmd
        return None

    def handle(self, ctx: TeamContext, event: Event) -> Command | None:
        if event.scope is Scope.DIRECT_MESSAGE and ctx.sessions.feed_text(ctx, user_id=event.user_id, text=event.text):
            return None

        cmd = self.match(event)
        if cmd is None:
            self._react(ctx, event)
            return None

        print(f"[slack] command={cmd.name} scope={event.scope.value} team={ctx.team_id} user={event.user_id}")
        guard = ctx.guard
        if not guard.is_configured(event.user_id):
            ctx.chat.send_dm(event.user_id, NOT_CONFIGURED)
            return cmd
        if cmd.access is Access.ADMIN and not guard.is_admin(event.user_id):
            ctx.chat.post(event.channel_id, admin_denied(cmd.denied))
            return cmd

        for reply in cmd.handler(ctx, event):
            ctx.chat.post(event.channel_id, reply)
        return cmd

    def _react(self, ctx: TeamContext, event: Event) -> None:
        if event.ts and event.user_id in ctx.reaction_user_ids:
            ctx.chat.add_reaction(event.channel_id, event.ts, ctx.reaction_emoji)
