from app.game.duels.rate_limit import DEFAULT_DUEL_QUOTA, DuelQuota
from app.game.duels.scoring import DEFAULT_DUEL_REWARDS, DuelRewards
from app.game.duels.service_facade import DuelService

__all__ = [
    "DEFAULT_DUEL_QUOTA",
    "DEFAULT_DUEL_REWARDS",
    "DuelQuota",
    "DuelRewards",
    "DuelService",
]
