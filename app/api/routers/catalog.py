# app/api/routers/catalog.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, require_admin
from app.data.database import get_db
from app.data.models.user import UserModel
from app.domain.constants import ITEM_TYPES
from app.domain.errors import NotFoundError
from app.domain.schemas import CourseIn, CourseOut, PurchaseOut, StoreItemIn, StoreItemOut
from app.services.catalog_service import CatalogService
from app.services.purchase_service import PurchaseService

router = APIRouter(prefix="/catalog", tags=["catalog"])


def get_service(db: Session):
    return CatalogService(db)


@router.get("/courses", response_model=List[CourseOut])
def list_courses(db: Session = Depends(get_db)):
    return get_service(db).list_courses()


@router.get("/courses/{course_id}", response_model=CourseOut)
def get_course(course_id: int, db: Session = Depends(get_db)):
    try:
        return get_service(db).get_course(course_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/courses", response_model=CourseOut, status_code=201)
def create_course(
    payload: CourseIn,
    _admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return get_service(db).create_course(payload)


@router.get("/store-items", response_model=List[StoreItemOut])
def list_store_items(db: Session = Depends(get_db)):
    return get_service(db).list_store_items()


@router.get("/store-items/{item_id}", response_model=StoreItemOut)
def get_store_item(item_id: int, db: Session = Depends(get_db)):
    try:
        return get_service(db).get_store_item(item_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/store-items", response_model=StoreItemOut, status_code=201)
def create_store_item(
    payload: StoreItemIn,
    _admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return get_service(db).create_store_item(payload)


@router.get("/my-purchases", response_model=List[PurchaseOut])
def my_purchases(
    item_type: str | None = Query(None),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if item_type is not None and item_type not in ITEM_TYPES:
        raise HTTPException(status_code=400, detail='Invalid item type. Must be "course" or "storeItem"')
    return PurchaseService(db).list_purchases(user.id, item_type)
