from app.workers.tasks.duels import run_duel_expiry_sweep

__all__ = ["run_duel_expiry_sweep"]
