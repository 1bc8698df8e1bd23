"""Celery app for the side writes made during checkout.

The storefront is a local client with no worker, so tasks run in-process
unless CELERY_TASK_ALWAYS_EAGER=0 and a real broker are configured.
"""
import logging
import os

from celery import Celery
from celery.signals import task_failure, task_retry

logger = logging.getLogger("bharatmart.tasks")


def make_celery(name: str = "bharatmart") -> Celery:
    app = Celery(
        name,
        broker=os.environ.get("CELERY_BROKER_URL", "memory://"),
        backend=os.environ.get("CELERY_RESULT_BACKEND", "cache+memory://"),
        include=["bharatmart.tasks.orders"],
    )
    app.conf.update(
        task_always_eager=os.environ.get("CELERY_TASK_ALWAYS_EAGER", "1") == "1",
        task_eager_propagates=True,
        task_store_eager_result=False,
        task_default_queue="bharatmart.orders",
    )
    return app


celery_app = make_celery()


@task_failure.connect
def log_task_failure(sender=None, task_id=None, exception=None, **kwargs):
    logger.error({
        "event": "task_failed",
        "task": getattr(sender, "name", task_id),
        "error": repr(exception),
    })


@task_retry.connect
def log_task_retry(sender=None, request=None, reason=None, **kwargs):
    logger.warning({
        "event": "task_retry",
        "task": getattr(sender, "name", ""),
        "attempt": getattr(request, "retries", 0) + 1,
        "reason": str(reason),
    })
