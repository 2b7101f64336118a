from __future__ import annotations

from dataclasses import dataclass, replace

from app.game.duels.constants import DUEL_RESULT_DRAW, DUEL_RESULT_LOSS, DUEL_RESULT_WIN
from app.game.duels.types import DuelOutcome, PlayerOutcome, PlayerStatsView


@dataclass(frozen=True, slots=True)
class DuelRewards:
    win_points: int = 5
    loss_points: int = 2
    draw_points: int = 2


DEFAULT_DUEL_REWARDS = DuelRewards()


def _apply_win(stats: PlayerStatsView, *, points: int) -> PlayerStatsView:
    current_streak = stats.current_game_streak + 1
    return replace(
        stats,
        games_played=stats.games_played + 1,
        games_won=stats.games_won + 1,
        points_earned=stats.points_earned + points,
        current_game_streak=current_streak,
        max_game_streak=max(stats.max_game_streak, current_streak),
    )


def _apply_loss(stats: PlayerStatsView, *, points: int) -> PlayerStatsView:
    return replace(
        stats,
        games_played=stats.games_played + 1,
        points_earned=stats.points_earned + points,
        current_game_streak=0,
    )


def _apply_draw(stats: PlayerStatsView, *, points: int) -> PlayerStatsView:
    # A draw counts as a win for both players but leaves streaks untouched.
    return replace(
        stats,
        games_played=stats.games_played + 1,
        games_won=stats.games_won + 1,
        points_earned=stats.points_earned + points,
    )


def resolve_duel(
    *,
    host_user_id: int,
    host_score: int,
    host_stats: PlayerStatsView,
    opponent_user_id: int,
    opponent_score: int,
    opponent_stats: PlayerStatsView,
    rewards: DuelRewards = DEFAULT_DUEL_REWARDS,
) -> DuelOutcome:
    if host_score == opponent_score:
        return DuelOutcome(
            host=PlayerOutcome(
                user_id=host_user_id,
                result=DUEL_RESULT_DRAW,
                points=rewards.draw_points,
                stats=_apply_draw(host_stats, points=rewards.draw_points),
            ),
            opponent=PlayerOutcome(
                user_id=opponent_user_id,
                result=DUEL_RESULT_DRAW,
                points=rewards.draw_points,
                stats=_apply_draw(opponent_stats, points=rewards.draw_points),
            ),
            winner_user_id=None,
        )

    host_won = host_score > opponent_score
    winner_points = rewards.win_points
    loser_points = rewards.loss_points
    host = PlayerOutcome(
        user_id=host_user_id,
        result=DUEL_RESULT_WIN if host_won else DUEL_RESULT_LOSS,
        points=winner_points if host_won else loser_points,
        stats=(
            _apply_win(host_stats, points=winner_points)
            if host_won
            else _apply_loss(host_stats, points=loser_points)
        ),
    )
    opponent = PlayerOutcome(
        user_id=opponent_user_id,
        result=DUEL_RESULT_LOSS if host_won else DUEL_RESULT_WIN,
        points=loser_points if host_won else winner_points,
        stats=(
            _apply_loss(opponent_stats, points=loser_points)
            if host_won
            else _apply_win(opponent_stats, points=winner_points)
        ),
    )
    return DuelOutcome(
        host=host,
        opponent=opponent,
        winner_user_id=host_user_id if host_won else opponent_user_id,
    )


def record_solo_game(stats: PlayerStatsView) -> PlayerStatsView:
    return replace(stats, games_played=stats.games_played + 1)
