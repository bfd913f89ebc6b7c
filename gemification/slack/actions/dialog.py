from __future__ import annotations

import re

from ...chat import CHOICE_ACTION_PREFIX
from ..context import team_context

EXPIRED = "This prompt has expired. Start the command again if you still need it."


def register(slack_app, services) -> None:  # noqa: ANN001
    @slack_app.action(re.compile(rf"^{CHOICE_ACTION_PREFIX}\d+$"))
    def handle_choice(ack, body, action, respond, context, client):  # noqa: ANN001
        ack()
        user_id = (body.get("user") or {}).get("id")
        with services.bots.watch(context.bot_token):
            ctx = team_context(services, context, client)
            outcome = services.sessions.feed_choice(ctx, user_id=user_id, raw_value=action.get("value"))

        if outcome is None:
            print(f"[dialog] expired prompt clicked team={ctx.team_id} user={user_id}")
            respond(text=EXPIRED, replace_original=False)
            return
        # swap the buttons for the outcome so the prompt cannot be answered twice
        original = (body.get("message") or {}).get("text") or ""
        respond(text=f"{original}\n>{outcome}", replace_original=True)
