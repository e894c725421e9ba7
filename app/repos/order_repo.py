# app/repos/order_repo.py
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from app.data.models.order import OrderModel
from app.data.models.payment import PaymentModel
from app.domain.constants import PENDING


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def order_id_exists(self, order_id: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_id == order_id)
        ).first() is not None

    def get_user_order(self, order_id: str, user_id: int) -> OrderModel | None:
        # zawsze zawężone do właściciela
        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.order_id == order_id, OrderModel.user_id == user_id)
        ).scalar_one_or_none()

    def find_user_order(self, order_ref: str, user_id: int) -> OrderModel | None:
        # publiczny order_id albo wewnętrzne id
        conditions = [OrderModel.order_id == order_ref]
        if order_ref.isdigit():
            conditions.append(OrderModel.id == int(order_ref))

        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items), selectinload(OrderModel.payment))
            .where(or_(*conditions), OrderModel.user_id == user_id)
        ).scalars().first()

    def list_user_orders(self, user_id: int, limit: int) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .options(selectinload(OrderModel.items), selectinload(OrderModel.payment))
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
                .limit(limit)
            ).scalars()
        )

    def list_stale_pending(self, cutoff: datetime) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel).where(
                    OrderModel.payment_status == PENDING,
                    OrderModel.created_at < cutoff,
                )
            ).scalars()
        )

    def create_payment(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        self.db.flush()
        return payment

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
