# app/services/catalog_service.py
from decimal import Decimal

from sqlalchemy.orm import Session

from app.data.models.course import CourseModel
from app.data.models.store_item import StoreItemModel
from app.domain.errors import NotFoundError
from app.domain.schemas import CourseIn, StoreItemIn
from app.repos.catalog_repo import CatalogRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogService:
    """Katalog tylko do odczytu dla checkoutu; tworzenie wyłącznie przez admina."""

    def __init__(self, db: Session):
        self.repo = CatalogRepo(db)

    def list_courses(self) -> list[CourseModel]:
        return self.repo.list_courses()

    def get_course(self, course_id: int) -> CourseModel:
        course = self.repo.get_course(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def list_store_items(self) -> list[StoreItemModel]:
        return self.repo.list_store_items()

    def get_store_item(self, item_id: int) -> StoreItemModel:
        item = self.repo.get_store_item(item_id)
        if not item:
            raise NotFoundError("Store item not found")
        return item

    def create_course(self, payload: CourseIn) -> CourseModel:
        try:
            course = self.repo.add(
                CourseModel(**payload.model_dump(), is_free=payload.price == Decimal("0"))
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Created course {course.id} at price {course.price}")
        return course

    def create_store_item(self, payload: StoreItemIn) -> StoreItemModel:
        try:
            item = self.repo.add(StoreItemModel(**payload.model_dump()))
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Created store item {item.id} at price {item.price}")
        return item
