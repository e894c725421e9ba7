# app/api/routers/enrollments.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.data.database import get_db
from app.data.models.user import UserModel
from app.domain.schemas import EnrollmentCheckOut, EnrollmentOut
from app.services.purchase_service import PurchaseService

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


def get_service(db: Session):
    return PurchaseService(db)


@router.get("/my-courses", response_model=List[EnrollmentOut])
def my_courses(
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Kursy użytkownika razem z zapisanym postępem."""
    return get_service(db).list_enrollments(user.id)


@router.get("/check/{course_id}", response_model=EnrollmentCheckOut)
def check_enrollment(
    course_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_service(db).check_enrollment(user.id, course_id)
