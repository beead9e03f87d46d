"""Celery tasks hosting the order lifecycle consumers.

Messages are acknowledged only after the task returns
(``acks_late``), so a worker crash redelivers the event.  Store outages
surface as ``PersistenceFailure`` and are retried by Celery.
"""

import structlog
from celery import shared_task

from modules.orders.events import OrderCreated
from modules.orders.factories import build_payment_consumer
from shared.domain.exceptions import PersistenceFailure

logger = structlog.get_logger(__name__)


@shared_task(
    name="orders.process_payment",
    acks_late=True,
    reject_on_worker_lost=True,
    autoretry_for=(PersistenceFailure,),
    retry_backoff=True,
    max_retries=5,
)
def process_payment(payload: dict) -> None:
    event = OrderCreated.from_payload(payload)
    logger.info("task.process_payment", order_id=str(event.aggregate_id))
    build_payment_consumer().handle(event)
