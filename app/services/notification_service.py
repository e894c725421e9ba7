# app/services/notification_service.py
from kombu.exceptions import OperationalError

from app.celery_worker import celery_app
from app.utils.logging import get_logger
from app.utils.retry import broker_retry

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysyłania powiadomień.
    Używa Celery do asynchronicznego przetwarzania, wołany dopiero po commicie zamówienia.
    """

    def send_order_completed(self, user_id: int, order_id: str):
        """
        Powiadomienie o zakończonym zamówieniu. Błąd brokera nie cofa zamówienia.
        """
        try:
            self._dispatch(user_id, order_id)
        except OperationalError as e:
            logger.error(f"Failed to enqueue order notification for {order_id}: {e}")

    @broker_retry()
    def _dispatch(self, user_id: int, order_id: str):
        send_order_completed_task.delay(user_id, order_id)


def get_notification_service() -> NotificationService:
    return NotificationService()


@celery_app.task(name="app.services.notification_service.send_order_completed_task")
def send_order_completed_task(user_id: int, order_id: str):
    """
    Celery task - tutaj byłby email z potwierdzeniem zakupu.
    Teraz tylko loguje.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} completed, access granted")

    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
