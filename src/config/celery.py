"""
Celery application for the order-processing workers.

DJANGO_SETTINGS_MODULE is set before the app is created so Celery reads
the Django settings (``CELERY_`` prefix).  Workers host the payment
consumer and the notifiers; the expiry sweeper runs under
``manage.py run_expiry_sweeper``.
"""

import os

import structlog
from celery import Celery
from celery.signals import task_postrun, task_prerun

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("orders")

# Read Django settings with the CELERY_ prefix
app.config_from_object("django.conf:settings", namespace="CELERY")

# Discover tasks.py in every installed app
app.autodiscover_tasks()


@task_prerun.connect
def bind_request_id(task=None, task_id=None, **kwargs):
    """Log a task under the request id of the HTTP call that caused it."""
    structlog.contextvars.clear_contextvars()
    context = {"task_id": task_id}
    request_id = task.request.get("request_id") if task is not None else None
    if request_id:
        context["correlation_id"] = request_id
    structlog.contextvars.bind_contextvars(**context)


@task_postrun.connect
def clear_request_id(**kwargs):
    structlog.contextvars.clear_contextvars()
