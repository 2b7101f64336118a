from celery import Celery
from celery.signals import setup_logging

from app.core.config import get_settings
from app.core.logging import configure_logging

settings = get_settings()

GAMIFICATION_QUEUE = "q_gamification"
DUEL_EXPIRY_SWEEP_TASK = "app.workers.tasks.duels.run_duel_expiry_sweep"
MIN_SWEEP_INTERVAL_SECONDS = 30

celery_app = Celery(
    "eduwave_gamification",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.workers.tasks.duels"],
)

celery_app.conf.update(
    task_default_queue=GAMIFICATION_QUEUE,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=settings.game_timezone,
    enable_utc=True,
    beat_schedule={
        "duel-expiry-sweep": {
            "task": DUEL_EXPIRY_SWEEP_TASK,
            "schedule": float(
                max(MIN_SWEEP_INTERVAL_SECONDS, settings.duel_expiry_sweep_interval_seconds)
            ),
            "options": {"queue": GAMIFICATION_QUEUE},
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**_: object) -> None:
    # Workers log through the same structlog pipeline as the API.
    configure_logging(get_settings().log_level)
