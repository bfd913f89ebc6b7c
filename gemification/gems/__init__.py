from .models import GemPeriod, GemTransaction, Group, Records, Team, UserGem
from .service import GemResult, give_gem
from .store import GemStore, InMemoryGemStore, build_store

__all__ = [
    "GemPeriod",
    "GemResult",
    "GemStore",
    "GemTransaction",
    "Group",
    "InMemoryGemStore",
    "Records",
    "Team",
    "UserGem",
    "build_store",
    "give_gem",
]
