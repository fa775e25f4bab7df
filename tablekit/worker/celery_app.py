# File: /tablekit/worker/celery_app.py | Version: 1.1 | Title: Celery application for queued table exports
"""
Run a worker with::

    celery -A tablekit.worker.celery_app worker -Q exports
"""
from celery import Celery

from tablekit.core.config import settings

celery_app = Celery("tablekit")

celery_app.conf.update(
    broker_url=settings.CELERY_BROKER_URL,
    result_backend=settings.CELERY_RESULT_BACKEND,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    task_eager_propagates=True,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_default_queue=settings.DEFAULT_EXPORT_QUEUE,
    imports=settings.TABLE_MODULES,
)

celery_app.autodiscover_tasks(["tablekit.worker"])
