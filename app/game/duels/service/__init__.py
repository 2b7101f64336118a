from __future__ import annotations

from .duels_create import create_duel
from .duels_join import join_duel
from .duels_lifecycle import cancel_duel, expire_due_duels, forfeit_duel, start_duel
from .duels_queries import get_duel_status, get_game_stats
from .duels_submit import duel_points_idempotency_key, submit_result

__all__ = [
    "cancel_duel",
    "create_duel",
    "duel_points_idempotency_key",
    "expire_due_duels",
    "forfeit_duel",
    "get_duel_status",
    "get_game_stats",
    "join_duel",
    "start_duel",
    "submit_result",
]
