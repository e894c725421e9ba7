# app/services/access_grantor.py
from datetime import datetime

from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.domain.constants import COURSE, STORE_ITEM
from app.domain.errors import ConflictError
from app.repos.catalog_repo import CatalogRepo
from app.repos.purchase_repo import PurchaseRepo
from app.repos.user_repo import UserRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class AccessGrantor:
    """
    Jedyne miejsce gdzie "zapłacił" zamienia się w "ma dostęp".

    Dla każdej pozycji zamówienia:
    - UserPurchase (ledger posiadania)
    - course: upsert Enrollment, enrolled_count +1 tylko dla nowego enrollmentu
    - storeItem: purchase_count +1, last_purchased_at
    Na koniec purchase_count użytkownika +1.

    Nie commituje - działa w transakcji wywołującego (OrderService).
    """

    def __init__(self, db: Session):
        self.purchases = PurchaseRepo(db)
        self.catalog = CatalogRepo(db)
        self.users = UserRepo(db)

    def grant(self, order: OrderModel, completed_at: datetime | None = None) -> None:
        # płatne: czas weryfikacji, darmowe: czas utworzenia zamówienia
        purchased_at = completed_at or order.created_at

        for item in order.items:
            granted = self.purchases.grant_purchase(
                user_id=order.user_id,
                item_type=item.item_type,
                item_id=item.item_id,
                order_pk=order.id,
                purchased_at=purchased_at,
            )
            if not granted:
                logger.warning(
                    f"User {order.user_id} already owns {item.item_type} {item.item_id}, "
                    f"aborting grant for order {order.order_id}"
                )
                raise ConflictError(f"You already own {item.name}")

            if item.item_type == COURSE:
                created = self.purchases.upsert_enrollment(
                    user_id=order.user_id,
                    course_id=item.item_id,
                    order_pk=order.id,
                    purchased_at=purchased_at,
                )
                if created:
                    self.catalog.increment_course_enrollment(item.item_id)
                else:
                    logger.info(
                        f"Enrollment for user {order.user_id} in course {item.item_id} "
                        f"already existed, enrolled_count unchanged"
                    )

            elif item.item_type == STORE_ITEM:
                self.catalog.record_store_item_purchase(item.item_id, purchased_at)

        self.users.record_purchase(order.user_id, purchased_at)

        logger.info(f"Granted access to {len(order.items)} item(s) for order {order.order_id}")
