from __future__ import annotations

import re

GEM_TOKEN = ":gem:"

# `<@U123>`, `<@U123|bob>` and a bare `@U123` all resolve to `U123`
_MENTION_RE = re.compile(r"@([^\s|>]+)")
_REASON_RE = re.compile(r"\bfor ", re.IGNORECASE)


def parse_mention(text: str | None) -> str | None:
    """Returns the member id of the first mention in `text`, or None."""
    m = _MENTION_RE.search(text or "")
    if not m:
        return None
    return m.group(1)


def extract_reason(text: str | None) -> str:
    """Everything after the first `for ` marker, stripped. Empty when there is no marker."""
    text = text or ""
    m = _REASON_RE.search(text)
    if not m:
        return ""
    return text[m.end():].strip()


def mention(user_id: str) -> str:
    return f"<@{user_id}>"
