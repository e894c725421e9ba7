from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text

from app.data.database import Base


class CourseModel(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    instructor = Column(String, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_free = Column(Boolean, nullable=False, default=True)
    category = Column(String, nullable=False, default="")
    thumbnail = Column(String, nullable=False, default="")

    # licznik zdenormalizowany, podbijany tylko przy nowym enrollmencie
    enrolled_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
