# app/repos/catalog_repo.py
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.data.models.course import CourseModel
from app.data.models.store_item import StoreItemModel
from app.domain.constants import COURSE, STORE_ITEM


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_course(self, course_id: int) -> CourseModel | None:
        return self.db.get(CourseModel, course_id)

    def get_store_item(self, item_id: int) -> StoreItemModel | None:
        return self.db.get(StoreItemModel, item_id)

    def get_item(self, item_type: str, item_id: int) -> CourseModel | StoreItemModel | None:
        if item_type == COURSE:
            return self.get_course(item_id)
        if item_type == STORE_ITEM:
            return self.get_store_item(item_id)
        return None

    def list_courses(self, limit: int = 100) -> list[CourseModel]:
        return list(
            self.db.execute(
                select(CourseModel).order_by(CourseModel.created_at.desc()).limit(limit)
            ).scalars()
        )

    def list_store_items(self, limit: int = 100) -> list[StoreItemModel]:
        return list(
            self.db.execute(
                select(StoreItemModel).order_by(StoreItemModel.created_at.desc()).limit(limit)
            ).scalars()
        )

    def add(self, item):
        self.db.add(item)
        self.db.flush()
        return item

    # liczniki jako pojedynczy UPDATE x = x + 1, bez read-modify-write
    def increment_course_enrollment(self, course_id: int) -> int:
        result = self.db.execute(
            update(CourseModel)
            .where(CourseModel.id == course_id)
            .values(enrolled_count=CourseModel.enrolled_count + 1)
        )
        return result.rowcount

    def record_store_item_purchase(self, item_id: int, purchased_at: datetime) -> int:
        result = self.db.execute(
            update(StoreItemModel)
            .where(StoreItemModel.id == item_id)
            .values(
                purchase_count=StoreItemModel.purchase_count + 1,
                last_purchased_at=purchased_at,
            )
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
