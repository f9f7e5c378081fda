import logging

from celery import Celery
from celery.signals import after_setup_logger

from app.core.config import settings

celery = Celery(
    "file-engine-worker",
    broker=settings.rabbitmq_url,
    backend=settings.redis_url,
    include=["worker.tasks"],
)

celery.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_default_queue="default",
    task_routes={
        "worker.tasks.deliver_notifications": {"queue": "notifications"},
    },
)


@after_setup_logger.connect
def _setup_logging(logger, *args, **kwargs):
    logger.setLevel(settings.log_level)
    logging.getLogger("app").setLevel(settings.log_level)
