from __future__ import annotations

from typing import TYPE_CHECKING

from .dialogs import TeamSetupDialog
from .dialogs.base import BUSY

if TYPE_CHECKING:
    from .services import TeamContext

WELCOME = "Welcome to Gemification! :gem:"


def run_installation(ctx: TeamContext, *, installer_id: str) -> bool:
    """
    Greets the installer, registers the team with the installer as its first
    admin and starts team setup. Setup itself is a no-op on a configured team.

    Returns whether the setup dialog was started.
    """
    print(f"[install] team={ctx.team_id} installer={installer_id}")
    ctx.chat.send_dm(installer_id, WELCOME)
    ctx.store.init_team(team_id=ctx.team_id, installer_id=installer_id)
    print(f"[install] team init done team={ctx.team_id}")

    started = ctx.sessions.begin(ctx, TeamSetupDialog(team_id=ctx.team_id, user_id=installer_id))
    if not started:
        ctx.chat.send_dm(installer_id, BUSY)
    return started
