from __future__ import annotations

import pytest

from conftest import TEAM, configure_team, say
from gemification.dialogs.base import BUSY
from gemification.dispatch import Dispatcher, Event, Scope
from gemification.gems import reports
from gemification.gems.auth import NOT_CONFIGURED


def dm(user: str, text: str, ts: str | None = None) -> Event:
    return Event(scope=Scope.DIRECT_MESSAGE, team_id=TEAM, user_id=user, channel_id="D1", text=text, ts=ts)


def ambient(user: str, text: str, ts: str | None = None) -> Event:
    return Event(scope=Scope.AMBIENT, team_id=TEAM, user_id=user, channel_id="C1", text=text, ts=ts)


@pytest.fixture
def dispatcher() -> Dispatcher:
    return Dispatcher()


def test_ambient_gem(ctx, chat, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    cmd = dispatcher.handle(ctx, ambient("U1", ":gem: <@U2> for fixing the build"))
    assert cmd is not None and cmd.name == "gem"
    assert store.get_user(team_id=TEAM, user_id="U2").current_gems == 1
    assert chat.dms_to("U1") == ["alice, you gave a gem to bob!"]
    assert chat.posts == []


def test_gem_is_not_a_dm_command(ctx, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    assert dispatcher.handle(ctx, dm("U1", ":gem: <@U2> for fixing the build")) is None
    assert store.get_user(team_id=TEAM, user_id="U2").current_gems == 0


def test_unconfigured_user_is_told_by_dm(ctx, chat, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    dispatcher.handle(ctx, dm("U4", "leaderboard"))
    assert chat.dms_to("U4") == [NOT_CONFIGURED]
    assert chat.posts == []


def test_admin_denial(ctx, chat, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    dispatcher.handle(ctx, dm("U2", "clear gems"))
    assert chat.posts_to("D1") == [
        "Nice try, wise guy, but you aren't an admin. Only admins can reset the gem count. :angry:"
    ]


def test_clear_gems(ctx, chat, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    store.award_gem(team_id=TEAM, giver_id="U1", receiver_id="U2", reason="r")
    dispatcher.handle(ctx, dm("U1", "Clear Gems please"))
    assert chat.posts_to("D1") == [reports.CLEARED]
    row = store.get_user(team_id=TEAM, user_id="U2")
    assert (row.current_gems, row.total_gems) == (0, 1)


def test_leaderboard_by_mention(ctx, chat, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    event = Event(scope=Scope.DIRECT_MENTION, team_id=TEAM, user_id="U2", channel_id="C1", text="<@UBOT> leaderboard")
    assert dispatcher.handle(ctx, event).name == "leaderboard"
    assert len(chat.posts_to("C1")) == 2


def test_admin_commands_need_a_direct_message(ctx, chat, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    event = Event(scope=Scope.DIRECT_MENTION, team_id=TEAM, user_id="U1", channel_id="C1", text="<@UBOT> clear gems")
    assert dispatcher.handle(ctx, event) is None
    assert chat.posts == []


def test_list_admin_alias(ctx, chat, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    assert dispatcher.handle(ctx, dm("U2", "list admin")).name == "list admins"
    assert chat.posts_to("D1") == ["List of current admins:\n<@U1>"]


def test_keywords_match_whole_words(dispatcher):  # noqa: ANN001
    assert dispatcher.match(dm("U1", "helpful")) is None
    assert dispatcher.match(dm("U1", "HELP")).name == "help"


def test_help_depends_on_admin_flag(ctx, chat, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    dispatcher.handle(ctx, dm("U1", "help"))
    dispatcher.handle(ctx, dm("U2", "help"))
    admin_help, public_help = chat.posts_to("D1")
    assert admin_help == reports.help_message(is_admin=True)
    assert public_help == reports.help_message(is_admin=False)


def test_dialog_owns_direct_messages(ctx, chat, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    dispatcher.handle(ctx, dm("U1", "add admin"))
    # typed while the dialog waits for a username
    assert dispatcher.handle(ctx, dm("U1", "leaderboard")) is None
    assert chat.posts_to("D1") == []
    assert chat.dms_to("U1")[-1] == "Who would you like to add as an admin? Or type `cancel` to quit."

    assert say(ctx, "U1", "cancel")
    dispatcher.handle(ctx, dm("U1", "add admin"))
    dispatcher.handle(ctx, dm("U1", "<@U2>"))
    assert ctx.sessions.active(TEAM, "U1").prompt_id is not None


def test_second_dialog_is_refused(ctx, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    dispatcher.handle(ctx, dm("U1", "add admin"))
    start = next(c for c in dispatcher.commands if c.name == "reconfigure user").handler
    assert start(ctx, dm("U1", "reconfigure user")) == [BUSY]
    assert ctx.sessions.active(TEAM, "U1").kind == "add_admin"


def test_reaction_on_unmatched_message(ctx, chat, store, dispatcher):  # noqa: ANN001
    configure_team(store)
    ctx.reaction_user_ids = ("U3",)
    dispatcher.handle(ctx, ambient("U3", "morning all", ts="111.222"))
    dispatcher.handle(ctx, ambient("U2", "morning", ts="111.333"))
    assert chat.reactions == [("C1", "111.222", "cow-hat")]
