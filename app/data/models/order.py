from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from app.data.database import Base
from app.domain.constants import METHOD_GATEWAY, PAYMENT_STATUSES, PENDING


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    # publiczny identyfikator ORD-<ts>-<rand>, klucz wyszukiwania dla callbacku
    order_id = Column(String(40), nullable=False, unique=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    total_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")

    payment_status = Column(String(20), nullable=False, default=PENDING, index=True)  # pending, completed, failed, refunded
    payment_method = Column(String(20), nullable=False, default=METHOD_GATEWAY)
    failure_reason = Column(String, nullable=True)

    gateway_order_id = Column(String(64), nullable=True, unique=True)
    gateway_payment_id = Column(String(64), nullable=True, unique=True)
    gateway_signature = Column(String(128), nullable=True)
    payment_id = Column(Integer, ForeignKey("payments.id", use_alter=True, name="fk_orders_payment_id"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
    payment = relationship("PaymentModel", foreign_keys=[payment_id])

    __table_args__ = (
        CheckConstraint(
            "payment_status IN (" + ", ".join(f"'{s}'" for s in PAYMENT_STATUSES) + ")",
            name="ck_orders_payment_status",
        ),
    )


class OrderItemModel(Base):
    """Snapshot pozycji, nie referencja - historia zamówień nie zmienia się razem z katalogiem."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_type = Column(String(20), nullable=False)
    item_id = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    thumbnail = Column(String, nullable=False, default="")

    order = relationship("OrderModel", back_populates="items")
