from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .mentions import GEM_TOKEN, extract_reason, mention, parse_mention
from .models import MAX_REASON, GemTransaction

if TYPE_CHECKING:
    from ..services import TeamContext

SELF_AWARD = (
    "Nice try, jackwagon. You can't give a gem to yourself. "
    "You may only give gems to other people in this channel."
)


@dataclass(frozen=True)
class GemStatement:
    giver_id: str
    receiver_id: str | None
    reason: str


@dataclass
class Validation:
    receiver_invalid: bool = False
    reason_empty: bool = False
    gem_in_reason: bool = False
    receiver_in_reason: bool = False
    receiver_unconfigured: bool = False

    @property
    def ok(self) -> bool:
        return not (
            self.receiver_invalid
            or self.reason_empty
            or self.gem_in_reason
            or self.receiver_in_reason
            or self.receiver_unconfigured
        )

    def error_lines(self) -> list[str]:
        lines: list[str] = []
        if self.receiver_invalid:
            lines.append("- you didn't type a valid gem receiver")
        if self.reason_empty:
            lines.append("- you didn't include a reason statement")
        if self.gem_in_reason:
            lines.append("- you typed gems in your reason statement")
        if self.receiver_in_reason:
            lines.append("- you don't type users in your reason statement")
        if self.receiver_unconfigured:
            lines.append(
                "- the person you are trying to give a gem to isn't configured with Gemification. "
                "Talk to a Gemification admin to get them configured with Gemification."
            )
        return lines


@dataclass
class GemResult:
    statement: GemStatement
    validation: Validation
    self_award: bool = False
    transaction: GemTransaction | None = None
    messages: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.transaction is not None


def parse_statement(giver_id: str, text: str) -> GemStatement:
    return GemStatement(giver_id=giver_id, receiver_id=parse_mention(text), reason=extract_reason(text))


def validate(ctx: TeamContext, stmt: GemStatement, channel_members: list[str]) -> Validation:
    receiver = stmt.receiver_id
    return Validation(
        receiver_invalid=receiver is None or receiver not in channel_members,
        reason_empty=stmt.reason == "",
        gem_in_reason=GEM_TOKEN in stmt.reason,
        receiver_in_reason=bool(receiver) and receiver in stmt.reason,
        receiver_unconfigured=bool(receiver) and not ctx.guard.is_configured(receiver),
    )


def error_message(giver_id: str, v: Validation) -> str:
    return (
        f"Sorry, {mention(giver_id)}, there was an error in your gem statement because:\n"
        + "".join(line + "\n" for line in v.error_lines())
        + "Please type your gem statement using a valid username like this:\n"
        + ":gem: [@username] for [reason]"
    )


def give_gem(ctx: TeamContext, *, giver_id: str, channel_id: str, text: str) -> GemResult:
    """
    Handles an ambient `:gem: @user for <reason>` message.

    Every outcome is sent to the giver by DM; the receiver is only told on success.
    The giver must already be a configured user.
    """
    stmt = parse_statement(giver_id, text)
    v = validate(ctx, stmt, ctx.chat.channel_members(channel_id))
    print(
        "[gem] statement",
        f"team={ctx.team_id}",
        f"giver={stmt.giver_id}",
        f"receiver={stmt.receiver_id}",
        f"reason={stmt.reason!r}",
        f"validation={v}",
    )
    result = GemResult(statement=stmt, validation=v)

    if not v.ok:
        msg = error_message(giver_id, v)
        ctx.chat.send_dm(giver_id, msg)
        result.messages.append(msg)
        return result

    assert stmt.receiver_id is not None
    if stmt.receiver_id == giver_id:
        result.self_award = True
        ctx.chat.send_dm(giver_id, SELF_AWARD)
        result.messages.append(SELF_AWARD)
        return result

    giver_name = ctx.display_name(giver_id)
    receiver_name = ctx.display_name(stmt.receiver_id)
    result.transaction = ctx.store.award_gem(
        team_id=ctx.team_id,
        giver_id=giver_id,
        receiver_id=stmt.receiver_id,
        reason=stmt.reason[:MAX_REASON],
    )
    print(f"[gem] awarded team={ctx.team_id} {giver_id} -> {stmt.receiver_id} tx={result.transaction.id}")

    to_giver = f"{giver_name}, you gave a gem to {receiver_name}!"
    ctx.chat.send_dm(giver_id, to_giver)
    ctx.chat.send_dm(stmt.receiver_id, f"You have received a gem from {giver_name}!")
    result.messages.append(to_giver)
    return result
