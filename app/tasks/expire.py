# app/tasks/expire.py
from app.celery_worker import celery_app
from app.data.database import SessionLocal
from app.services.order_service import OrderService
from app.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="app.tasks.expire.expire_pending_orders_task")
def expire_pending_orders_task():
    logger.info("Expire pending orders task started")

    db = SessionLocal()
    try:
        expired = OrderService(db).expire_stale_orders()
        logger.info(f"Marked {expired} stale pending order(s) as failed")
        return expired
    finally:
        db.close()
