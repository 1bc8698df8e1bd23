import logging
from celery import shared_task
from sqlalchemy.exc import OperationalError

import celery_app  # noqa: F401  configures the default app
from models import session_factory
from bharatmart.services.order_service import create_order_record

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def record_order_task(self, database_url: str, payload: dict) -> int:
    """Write the order record for a WhatsApp checkout."""
    try:
        order_id = create_order_record(session_factory(database_url), payload)
    except OperationalError as exc:
        # locked or unreachable database; the payload itself is fine
        logger.warning("Order store unavailable: %s", exc.orig)
        raise self.retry(exc=exc)
    logger.info({
        "event": "order_recorded",
        "order_id": order_id,
        "user_id": payload.get("user_id"),
        "total_qty": payload.get("total_qty"),
    })
    return order_id
