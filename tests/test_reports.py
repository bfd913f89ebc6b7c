from __future__ import annotations

from datetime import datetime, timedelta, timezone

from conftest import TEAM, configure_team
from gemification.gems import reports
from gemification.roster import Member


def test_leaderboard_per_group(ctx, store):  # noqa: ANN001
    configure_team(store)
    store.award_gem(team_id=TEAM, giver_id="U1", receiver_id="U2", reason="a")
    store.award_gem(team_id=TEAM, giver_id="U3", receiver_id="U2", reason="b")
    store.award_gem(team_id=TEAM, giver_id="U2", receiver_id="U1", reason="c")
    assert reports.leaderboard(ctx) == [
        "Backend Leaderboard:\n>1.) bob 2\n>2.) alice 1",
        "The Frontend leaderboard is empty. Try giving someone a :gem:!",
    ]


def test_leaderboard_shows_top_ten(ctx, chat, store):  # noqa: ANN001
    groups = configure_team(store)
    for i in range(12):
        uid = f"X{i:02d}"
        chat.members.append(Member(id=uid, name=f"user{i:02d}"))
        store.assign_group(team_id=TEAM, user_id=uid, group_id=groups["Frontend"])
        for _ in range(i + 1):
            store.award_gem(team_id=TEAM, giver_id="U1", receiver_id=uid, reason="r")
    board = reports.leaderboard(ctx)[1]
    lines = board.splitlines()
    assert lines[0] == "Frontend Leaderboard:"
    assert len(lines) == 11
    assert lines[1] == ">1.) user11 12"
    assert lines[-1] == ">10.) user02 3"

    everything = reports.all_gems(ctx)[1].splitlines()
    assert everything[0] == "Frontend All Gems Leaderboard:"
    assert len(everything) == 13


def test_all_gems_survives_clear(ctx, store):  # noqa: ANN001
    configure_team(store)
    store.award_gem(team_id=TEAM, giver_id="U1", receiver_id="U3", reason="a")
    assert reports.clear_gems(ctx) == reports.CLEARED
    assert reports.leaderboard(ctx)[1] == "The Frontend leaderboard is empty. Try giving someone a :gem:!"
    assert reports.all_gems(ctx) == [
        "Nobody has received any gems yet in the Backend group. :sob: Try giving someone a :gem:!",
        "Frontend All Gems Leaderboard:\n>1.) carol 1",
    ]


def test_no_groups(ctx, store):  # noqa: ANN001
    store.init_team(team_id=TEAM, installer_id="U1")
    assert reports.leaderboard(ctx) == [reports.NO_GROUPS]


def test_format_timestamp():
    ts = datetime(2017, 1, 2, 15, 4, 5, tzinfo=timezone.utc)
    assert reports.format_timestamp(ts) == "Monday, January 2nd, 2017, 3:04:05 PM"
    assert reports.format_timestamp(datetime(2017, 1, 11, 0, 0, 9)) == "Wednesday, January 11th, 2017, 12:00:09 AM"
    assert reports.format_timestamp(datetime(2017, 1, 23, 12, 30, tzinfo=timezone.utc)).startswith("Monday, January 23rd")


def test_reasons(ctx, store):  # noqa: ANN001
    configure_team(store)
    t0 = datetime(2017, 1, 2, 15, 4, 5, tzinfo=timezone.utc)
    store.award_gem(team_id=TEAM, giver_id="U1", receiver_id="U2", reason="old news", at=t0)
    store.award_gem(team_id=TEAM, giver_id="U3", receiver_id="U2", reason="fresh", at=t0 + timedelta(days=1))
    msg = reports.reasons(ctx, "get reasons <@U2>")
    assert msg == (
        "Below are the Gem transaction reasons for <@U2> from the last two gem periods.\n"
        ">1.) fresh\n>\t-given on Tuesday, January 3rd, 2017, 3:04:05 PM\n"
        ">2.) old news\n>\t-given on Monday, January 2nd, 2017, 3:04:05 PM"
    )


def test_reasons_empty_and_invalid(ctx, store):  # noqa: ANN001
    configure_team(store)
    assert reports.reasons(ctx, "get reasons <@U3>").endswith("<@U3> doesn't have any gems.")
    assert reports.reasons(ctx, "get reasons <@U404>").startswith("The username you entered isn't valid.")
    assert reports.reasons(ctx, "get reasons").startswith("The username you entered isn't valid.")


def test_team_configuration(ctx, store):  # noqa: ANN001
    configure_team(store)
    assert reports.team_configuration(ctx) == (
        "Below is the current Gemification configuration for your team.\n"
        "Your team has 2 groups. They are:\n"
        ">1.) Backend\n>2.) Frontend"
        "\n\nUsers in Backend group:\n><@U1>\n><@U2>"
        "\n\nUsers in Frontend group:\n><@U3>"
    )


def test_admins_message(ctx, store):  # noqa: ANN001
    configure_team(store)
    store.set_admin(team_id=TEAM, user_id="U3", is_admin=True)
    assert reports.admins_message(ctx) == "List of current admins:\n<@U1>\n<@U3>"


def test_help_variants():
    public = reports.help_message(is_admin=False)
    admin = reports.help_message(is_admin=True)
    assert "`leaderboard`" in public and "`clear gems`" not in public
    assert "*Admin commands" in admin and "`reconfigure user`" in admin
