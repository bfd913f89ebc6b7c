from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from .mentions import mention, parse_mention
from .models import UserGem

if TYPE_CHECKING:
    from ..services import TeamContext

LEADERBOARD_SIZE = 10
NO_GROUPS = "There aren't any groups set for your team yet."
CLEARED = (
    "The leaderboard was cleared successfully. "
    "Now get out there and start earning yourself some gems! :gem:"
)


def _ranked_lines(ctx: TeamContext, rows: list[UserGem], attr: str) -> str:
    names = {m.id: m.name for m in ctx.roster()}
    return "\n".join(
        f">{i}.) {names.get(r.user_id, r.user_id)} {getattr(r, attr)}"
        for i, r in enumerate(rows, start=1)
    )


def leaderboard(ctx: TeamContext) -> list[str]:
    """One message per group: top members by gems of the current period."""
    groups = ctx.store.list_groups(team_id=ctx.team_id)
    if groups.is_empty():
        return [NO_GROUPS]
    out: list[str] = []
    for g in groups:
        rows = ctx.store.ranked_users(team_id=ctx.team_id, group_id=g.id, by="current", limit=LEADERBOARD_SIZE)
        if rows.is_empty():
            out.append(f"The {g.group_name} leaderboard is empty. Try giving someone a :gem:!")
            continue
        out.append(f"{g.group_name} Leaderboard:\n" + _ranked_lines(ctx, list(rows), "current_gems"))
    return out


def all_gems(ctx: TeamContext) -> list[str]:
    """One message per group: every member with all-time gems, untruncated."""
    groups = ctx.store.list_groups(team_id=ctx.team_id)
    if groups.is_empty():
        return [NO_GROUPS]
    out: list[str] = []
    for g in groups:
        rows = ctx.store.ranked_users(team_id=ctx.team_id, group_id=g.id, by="total")
        if rows.is_empty():
            out.append(f"Nobody has received any gems yet in the {g.group_name} group. :sob: Try giving someone a :gem:!")
            continue
        out.append(f"{g.group_name} All Gems Leaderboard:\n" + _ranked_lines(ctx, list(rows), "total_gems"))
    return out


def format_timestamp(ts: datetime, tz: str = "UTC") -> str:
    """`Monday, January 2nd, 2017, 3:04:05 PM` in the given timezone."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    zone = timezone.utc if tz.upper() == "UTC" else ZoneInfo(tz)
    local = ts.astimezone(zone)
    day = local.day
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    hour = local.hour % 12 or 12
    ampm = "AM" if local.hour < 12 else "PM"
    return f"{local:%A}, {local:%B} {day}{suffix}, {local.year}, {hour}:{local:%M}:{local:%S} {ampm}"


def reasons(ctx: TeamContext, text: str) -> str:
    """`get reasons @user`: reasons received over the last two gem periods, newest first."""
    target = ctx.member(parse_mention(text))
    if target is None:
        return "The username you entered isn't valid.\nProper usage: `get reasons @slackusername`"
    who = mention(target.id)
    header = f"Below are the Gem transaction reasons for {who} from the last two gem periods.\n"
    rows = ctx.store.recent_reasons(team_id=ctx.team_id, user_id=target.id, periods=2)
    if rows.is_empty():
        return header + f"{who} doesn't have any gems."
    lines = [
        f">{i}.) {t.reason}\n>\t-given on {format_timestamp(t.timestamp, ctx.timezone)}"
        for i, t in enumerate(rows, start=1)
    ]
    return header + "\n".join(lines)


def team_configuration(ctx: TeamContext) -> str:
    groups = ctx.store.list_groups(team_id=ctx.team_id)
    out = "Below is the current Gemification configuration for your team.\n"
    out += f"Your team has {groups.count()} groups. They are:\n"
    out += "\n".join(f">{i}.) {g.group_name}" for i, g in enumerate(groups, start=1))
    for g in groups:
        members = ctx.store.list_group_members(team_id=ctx.team_id, group_id=g.id)
        out += f"\n\nUsers in {g.group_name} group:\n"
        out += "\n".join(f">{mention(u.user_id)}" for u in members)
    return out


def admins_message(ctx: TeamContext) -> str:
    admins = ctx.store.list_admins(team_id=ctx.team_id)
    return "List of current admins:\n" + "\n".join(mention(a.user_id) for a in admins)


def clear_gems(ctx: TeamContext) -> str:
    period = ctx.store.start_period(team_id=ctx.team_id)
    print(f"[gem] new period team={ctx.team_id} reset_time={period.reset_time.isoformat()}")
    return CLEARED


PUBLIC_HELP = (
    "1) How to give someone a gem :gem:\n"
    "Type `:gem: [@username] for [reason]`\n\n"
    "2) How to show the leaderboard\n"
    "In a direct message to Gemification, type `leaderboard`\n"
    "In a channel, type `@gemification leaderboard`\n\n"
)
ADMIN_HELP = (
    "*Admin commands (these can only be run if you're an admin)*\n"
    "1) How to clear the gem leaderboard\n"
    "In a direct message to Gemification, type `clear gems`\n\n"
    "2) How to list the current admins in Gemification\n"
    "In a direct message to Gemification, type `list admins`\n\n"
    "3) How to add an admin to Gemification\n"
    "In a direct message to Gemification, type `add admin` and follow the prompts\n\n"
    "4) How to remove an admin from Gemification\n"
    "In a direct message to Gemification, type `remove admin` and follow the prompts\n\n"
    "5) Get a full list of gems given in the current time period.\n"
    "In a direct message to Gemification, type `all gems`\n\n"
    "6) Show a list of gem statement reasons for a Gemification user.\n"
    "In a direct message to Gemification, type `get reasons @slackuser`\n\n"
    "7) List all of the Gemification user and which group they are assigned to.\n"
    "In a direct message to Gemification, type `team configuration`\n\n"
    "8) Reconfigure a user to a different Gemification group.\n"
    "In a direct message to Gemification, type `reconfigure user`\n\n"
    "9) Finish setting up groups for your team if setup was interrupted.\n"
    "In a direct message to Gemification, type `configure team`\n\n"
)


def help_message(*, is_admin: bool) -> str:
    out = (
        "Need some help? We all do sometimes...\n"
        "Here are a list of commands that you can use to interact with Gemification:\n\n"
    )
    if is_admin:
        return out + "*Public commands*\n" + PUBLIC_HELP + ADMIN_HELP
    return out + PUBLIC_HELP
