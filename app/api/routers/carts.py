#app/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.data.database import get_db
from app.data.models.user import UserModel
from app.domain.errors import NotFoundError
from app.domain.schemas import (
    CartItemAddedOut,
    CartOut,
    CartTotalOut,
    ItemIn,
    MessageOut,
)
from app.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return svc.get_cart(user.id)


@router.delete("", response_model=MessageOut)
def clear_cart(
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.clear_cart(user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/total", response_model=CartTotalOut)
def get_cart_total(
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return svc.get_total(user.id)


@router.post("/add-item", response_model=CartItemAddedOut, status_code=201)
def add_item(
    payload: ItemIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_item(user.id, payload.item_type, payload.item_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/remove-item/{cart_item_id}", response_model=MessageOut)
def remove_item(
    cart_item_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.remove_item(user.id, cart_item_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
