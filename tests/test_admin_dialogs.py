from __future__ import annotations

from conftest import TEAM, click, configure_team, say
from gemification.dialogs import AddAdminDialog, RemoveAdminDialog
from gemification.dialogs.admins import ADD_PROMPT, LAST_ADMIN, TARGET_NOT_CONFIGURED
from gemification.dialogs.base import INVALID_USERNAME


def _start(ctx, dialog_cls):  # noqa: ANN001, ANN202
    assert ctx.sessions.begin(ctx, dialog_cls(team_id=TEAM, user_id="U1"))


def test_add_admin(ctx, chat, store):  # noqa: ANN001
    configure_team(store)
    _start(ctx, AddAdminDialog)
    assert chat.dms_to("U1") == [ADD_PROMPT]

    say(ctx, "U1", "<@U2>")
    assert click(ctx, chat, "U1", "Yes") == "<@U2> is now set as an admin."
    assert store.get_user(team_id=TEAM, user_id="U2").is_admin
    assert chat.dms_to("U2") == ["Hey there, good looking. :wink: You have been set as an admin."]
    assert ctx.sessions.active(TEAM, "U1") is None


def test_add_admin_declined(ctx, chat, store):  # noqa: ANN001
    configure_team(store)
    _start(ctx, AddAdminDialog)
    say(ctx, "U1", "<@U3|carol>")
    assert click(ctx, chat, "U1", "No") == "<@U3> will not be set as an admin."
    assert not store.get_user(team_id=TEAM, user_id="U3").is_admin


def test_add_admin_rejects_bad_targets(ctx, chat, store):  # noqa: ANN001
    configure_team(store)
    _start(ctx, AddAdminDialog)
    say(ctx, "U1", "nobody")
    assert chat.dms_to("U1")[-2:] == [INVALID_USERNAME, ADD_PROMPT]

    say(ctx, "U1", "<@U1>")
    assert chat.dms_to("U1")[-1] == "<@U1> is already an admin user in gemification."
    assert ctx.sessions.active(TEAM, "U1") is None

    _start(ctx, AddAdminDialog)
    say(ctx, "U1", "<@U4>")
    assert chat.dms_to("U1")[-1] == TARGET_NOT_CONFIGURED


def test_remove_admin(ctx, chat, store):  # noqa: ANN001
    configure_team(store)
    store.set_admin(team_id=TEAM, user_id="U2", is_admin=True)
    _start(ctx, RemoveAdminDialog)

    say(ctx, "U1", "list")
    assert chat.dms_to("U1")[-2] == "List of current admins:\n<@U1>\n<@U2>"

    say(ctx, "U1", "<@U2>")
    assert click(ctx, chat, "U1", "Yes") == "<@U2> is now removed from being an admin."
    assert not store.get_user(team_id=TEAM, user_id="U2").is_admin
    assert chat.dms_to("U2") == ["You have been removed as an admin."]


def test_remove_non_admin(ctx, chat, store):  # noqa: ANN001
    configure_team(store)
    _start(ctx, RemoveAdminDialog)
    say(ctx, "U1", "<@U3>")
    assert chat.dms_to("U1")[-1] == "<@U3> is currently not an admin."


def test_last_admin_is_kept(ctx, chat, store):  # noqa: ANN001
    configure_team(store)
    _start(ctx, RemoveAdminDialog)
    say(ctx, "U1", "<@U1>")
    assert chat.dms_to("U1")[-1] == LAST_ADMIN
    assert store.count_admins(team_id=TEAM) == 1


def test_last_admin_rechecked_on_confirm(ctx, chat, store):  # noqa: ANN001
    configure_team(store)
    store.set_admin(team_id=TEAM, user_id="U2", is_admin=True)
    _start(ctx, RemoveAdminDialog)
    say(ctx, "U1", "<@U2>")
    # the other admin went away while the buttons were up
    store.set_admin(team_id=TEAM, user_id="U1", is_admin=False)
    assert click(ctx, chat, "U1", "Yes") == LAST_ADMIN
    assert store.get_user(team_id=TEAM, user_id="U2").is_admin
