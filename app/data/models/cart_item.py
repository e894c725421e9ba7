from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    item_type = Column(String(20), nullable=False)
    # bez FK, item_id wskazuje na courses albo store_items zależnie od item_type
    item_id = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(10, 2), nullable=False)

    # snapshot z chwili dodania do koszyka
    name = Column(String, nullable=False, default="")
    thumbnail = Column(String, nullable=False, default="")
    description = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    cart = relationship("CartModel", back_populates="items")

    __table_args__ = (
        UniqueConstraint("cart_id", "item_type", "item_id", name="u_cart_item"),
    )
