from __future__ import annotations

from ..chat import SlackChat
from ..services import Services, TeamContext


def team_context(services: Services, context, client) -> TeamContext:  # noqa: ANN001
    """Builds the handler context from a Bolt listener's `context` and `client`."""
    token = context.bot_token
    if token:
        # reconnects when an earlier failure dropped this token
        services.bots.spawn(token)
    return services.context(team_id=context.team_id, chat=SlackChat(client))
