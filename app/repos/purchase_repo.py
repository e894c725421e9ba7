# app/repos/purchase_repo.py
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from app.data.models.enrollment import EnrollmentModel
from app.data.models.user_purchase import UserPurchaseModel
from app.data.upsert import dialect_insert


class PurchaseRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_active_purchase(self, user_id: int, item_id: int, item_type: str) -> UserPurchaseModel | None:
        return self.db.execute(
            select(UserPurchaseModel).where(
                UserPurchaseModel.user_id == user_id,
                UserPurchaseModel.item_id == item_id,
                UserPurchaseModel.item_type == item_type,
                UserPurchaseModel.is_active.is_(True),
            )
        ).scalar_one_or_none()

    def list_active_purchases(self, user_id: int, item_type: str | None = None) -> list[UserPurchaseModel]:
        query = select(UserPurchaseModel).where(
            UserPurchaseModel.user_id == user_id,
            UserPurchaseModel.is_active.is_(True),
        )
        if item_type:
            query = query.where(UserPurchaseModel.item_type == item_type)

        return list(
            self.db.execute(
                query.order_by(UserPurchaseModel.purchased_at.desc(), UserPurchaseModel.id.desc())
            ).scalars()
        )

    def list_enrollments(self, user_id: int) -> list[EnrollmentModel]:
        return list(
            self.db.execute(
                select(EnrollmentModel)
                .options(selectinload(EnrollmentModel.course))
                .where(EnrollmentModel.user_id == user_id)
                .order_by(EnrollmentModel.enrolled_at.desc(), EnrollmentModel.id.desc())
            ).scalars()
        )

    def get_enrollment(self, user_id: int, course_id: int) -> EnrollmentModel | None:
        return self.db.execute(
            select(EnrollmentModel)
            .options(selectinload(EnrollmentModel.course))
            .where(EnrollmentModel.user_id == user_id, EnrollmentModel.course_id == course_id)
        ).scalar_one_or_none()

    def grant_purchase(
        self,
        user_id: int,
        item_type: str,
        item_id: int,
        order_pk: int,
        purchased_at: datetime,
    ) -> bool:
        """
        INSERT ... ON CONFLICT (user_id, item_id, item_type) DO UPDATE WHERE NOT is_active
        Nieaktywny wiersz zostaje reaktywowany, aktywny daje rowcount 0 -> False.
        """
        stmt = dialect_insert(self.db, UserPurchaseModel).values(
            user_id=user_id,
            item_type=item_type,
            item_id=item_id,
            order_id=order_pk,
            purchased_at=purchased_at,
            is_active=True,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "item_id", "item_type"],
            set_={
                "order_id": stmt.excluded.order_id,
                "purchased_at": stmt.excluded.purchased_at,
                "is_active": True,
            },
            where=UserPurchaseModel.is_active.is_(False),
        )
        return self.db.execute(stmt).rowcount == 1

    def upsert_enrollment(
        self,
        user_id: int,
        course_id: int,
        order_pk: int,
        purchased_at: datetime,
    ) -> bool:
        """Zwraca True tylko gdy enrollment został utworzony (do licznika enrolled_count)."""
        stmt = dialect_insert(self.db, EnrollmentModel).values(
            user_id=user_id,
            course_id=course_id,
            order_id=order_pk,
            is_paid=True,
            purchased_at=purchased_at,
            enrolled_at=purchased_at,
            progress=0,
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["user_id", "course_id"])
        created = self.db.execute(stmt).rowcount == 1

        if not created:
            # progress zostaje, podbijamy tylko metadane zakupu
            self.db.execute(
                update(EnrollmentModel)
                .where(
                    EnrollmentModel.user_id == user_id,
                    EnrollmentModel.course_id == course_id,
                )
                .values(order_id=order_pk, is_paid=True, purchased_at=purchased_at)
            )

        return created
