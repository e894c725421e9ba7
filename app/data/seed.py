# app/data/seed.py
from decimal import Decimal

from app.data.database import SessionLocal, init_db
from app.data.models import CourseModel, StoreItemModel, UserModel
from app.utils.logging import get_logger

logger = get_logger(__name__)


def seed(db=None):
    own_session = db is None
    db = db or SessionLocal()
    try:
        # tylko gdy katalog pusty
        if db.query(CourseModel).first():
            return

        db.add_all(
            [
                UserModel(name="Admin", email="admin@example.com", is_admin=True),
                CourseModel(
                    title="Python Fundamentals",
                    description="Variables, control flow, functions.",
                    instructor="Staff",
                    price=Decimal("0"),
                    is_free=True,
                    category="programming",
                ),
                CourseModel(
                    title="Data Structures in Depth",
                    description="Lists, trees, graphs and their trade-offs.",
                    instructor="Staff",
                    price=Decimal("500"),
                    is_free=False,
                    category="programming",
                ),
                StoreItemModel(
                    name="Interview Cheat Sheet",
                    description="Two-page PDF.",
                    price=Decimal("0"),
                    file_url="https://files.example.com/cheat-sheet.pdf",
                    category="pdf",
                ),
                StoreItemModel(
                    name="Algorithms Workbook",
                    description="120 solved problems.",
                    price=Decimal("299"),
                    file_url="https://files.example.com/workbook.pdf",
                    category="pdf",
                ),
            ]
        )
        db.commit()
        logger.info("Seeded catalog")
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    init_db()
    seed()
