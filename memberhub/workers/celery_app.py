from celery import Celery, signals

from memberhub.core.config import get_settings
from memberhub.core.logging import configure_logging

settings = get_settings()

celery_app = Celery(
    "memberhub",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "memberhub.workers.tasks.inactivity_sweep",
    ],
)

celery_app.conf.update(
    task_default_queue="q_normal",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=settings.check_in_timezone,
    enable_utc=True,
)


@signals.setup_logging.connect
def _configure_worker_logging(**kwargs: object) -> None:
    # connecting this signal stops celery from installing its own root handlers
    configure_logging(settings.log_level, json_output=settings.app_env != "dev")


@celery_app.task(name="memberhub.workers.celery_app.ping")
def ping() -> str:
    return "pong"
