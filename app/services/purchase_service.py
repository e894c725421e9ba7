# app/services/purchase_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.data.models.enrollment import EnrollmentModel
from app.domain.constants import COURSE
from app.domain.errors import ConflictError
from app.repos.purchase_repo import PurchaseRepo


def item_type_name(item_type: str) -> str:
    return "course" if item_type == COURSE else "item"


class PurchaseService:
    """Odczyt ledgera posiadania (UserPurchase) i blokada podwójnego zakupu, odczyt enrollmentów."""

    def __init__(self, db: Session):
        self.repo = PurchaseRepo(db)

    def owns(self, user_id: int, item_id: int, item_type: str) -> bool:
        return self.repo.get_active_purchase(user_id, item_id, item_type) is not None

    def prevent_duplicate_purchase(self, user_id: int, item_id: int, item_type: str) -> None:
        if self.owns(user_id, item_id, item_type):
            raise ConflictError(f"You have already purchased this {item_type_name(item_type)}")

    def list_purchases(self, user_id: int, item_type: str | None = None) -> List[Dict[str, Any]]:
        return [
            {
                "id": p.id,
                "item_type": p.item_type,
                "item_id": p.item_id,
                "order_id": p.order_id,
                "purchased_at": p.purchased_at,
                "expires_at": p.expires_at,
                "is_active": p.is_active,
            }
            for p in self.repo.list_active_purchases(user_id, item_type)
        ]

    # enrollmenty tworzy AccessGrantor, tutaj tylko odczyt
    def list_enrollments(self, user_id: int) -> List[EnrollmentModel]:
        return self.repo.list_enrollments(user_id)

    def check_enrollment(self, user_id: int, course_id: int) -> Dict[str, Any]:
        enrollment = self.repo.get_enrollment(user_id, course_id)
        return {"enrolled": enrollment is not None, "enrollment": enrollment}

