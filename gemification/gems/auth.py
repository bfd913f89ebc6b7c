from __future__ import annotations

from .store import GemStore

NOT_CONFIGURED = (
    "You are not configured in Gemification. Please talk to a "
    "Gemification admin and have them configure you."
)


def admin_denied(action: str) -> str:
    return f"Nice try, wise guy, but you aren't an admin. Only admins can {action}. :angry:"


class Guard:
    """Answers "who may do what" for one team; every answer is a fresh store lookup."""

    def __init__(self, store: GemStore, team_id: str) -> None:
        self._store = store
        self._team_id = team_id

    def is_configured(self, user_id: str) -> bool:
        return self._store.get_user(team_id=self._team_id, user_id=user_id) is not None

    def is_admin(self, user_id: str) -> bool:
        row = self._store.get_user(team_id=self._team_id, user_id=user_id)
        return bool(row and row.is_admin)
