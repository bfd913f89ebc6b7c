from __future__ import annotations

import pytest

from gemification.gems.mentions import extract_reason, parse_mention


@pytest.mark.parametrize(
    "text,expected",
    [
        (":gem: <@U2> for helping", "U2"),
        (":gem: <@U2|bob> for helping", "U2"),
        (":gem: @U2 for helping", "U2"),
        ("<@U2> :gem: <@U3> for both", "U2"),
        (":gem: for helping", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_mention(text, expected):  # noqa: ANN001
    assert parse_mention(text) == expected


def test_reason_follows_for_marker():
    assert extract_reason(":gem: @U2 for helping with the demo") == "helping with the demo"


def test_reason_marker_is_case_insensitive():
    assert extract_reason(":gem: <@U2> For fixing prod") == "fixing prod"
    assert extract_reason(":gem: <@U2> FOR fixing prod") == "fixing prod"


def test_reason_uses_first_marker_on_a_word_boundary():
    # "before " contains "for" but not as a word
    assert extract_reason(":gem: <@U2> before lunch for the review for real") == "the review for real"


def test_reason_empty_without_marker():
    assert extract_reason(":gem: <@U2> thanks!") == ""
    assert extract_reason(":gem: <@U2> for") == ""
