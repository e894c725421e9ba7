from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from app.data.database import Base


class EnrollmentModel(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)

    enrolled_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    progress = Column(Integer, nullable=False, default=0)

    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)
    is_paid = Column(Boolean, nullable=False, default=False)
    purchased_at = Column(DateTime(timezone=True), nullable=True)

    course = relationship("CourseModel")

    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="u_user_course"),
    )
