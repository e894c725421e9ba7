from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text

from app.data.database import Base


class StoreItemModel(Base):
    __tablename__ = "store_items"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False, default=0)
    file_url = Column(String, nullable=False, default="")
    category = Column(String, nullable=False, default="")
    thumbnail = Column(String, nullable=False, default="")

    purchase_count = Column(Integer, nullable=False, default=0)
    last_purchased_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
