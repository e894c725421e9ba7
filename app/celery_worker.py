# app/celery_worker.py
from celery import Celery

from app.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "commerce",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# Explicite importuj taski, żeby Celery je zarejestrował
celery_app.conf.imports = (
    "app.tasks.expire",
    "app.services.notification_service",
)

# Konfiguracja beat schedule
celery_app.conf.beat_schedule = {
    "expire-pending-orders-every-15-minutes": {
        "task": "app.tasks.expire.expire_pending_orders_task",
        "schedule": 15 * 60.0,
    },
}

celery_app.conf.timezone = "UTC"
