from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from app.data.database import Base
from app.domain.constants import METHOD_GATEWAY, PENDING


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    status = Column(String(20), nullable=False, default=PENDING)
    payment_method = Column(String(20), nullable=False, default=METHOD_GATEWAY)

    gateway_order_id = Column(String(64), nullable=True, unique=True)
    gateway_payment_id = Column(String(64), nullable=True, unique=True)
    gateway_signature = Column(String(128), nullable=True)

    attempt_number = Column(Integer, nullable=False, default=1)
    failure_reason = Column(String, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
