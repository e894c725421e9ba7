# app/api/routers/payments.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.data.database import get_db
from app.data.models.user import UserModel
from app.domain.errors import GatewayError, NotFoundError
from app.domain.schemas import (
    CheckoutOut,
    ItemIn,
    OrderOut,
    OrderStatusOut,
    PaymentFailureIn,
    VerifyPaymentIn,
    VerifyPaymentOut,
)
from app.services.notification_service import NotificationService, get_notification_service
from app.services.order_service import OrderService
from app.services.payment_gateway import PaymentGateway, get_payment_gateway
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def get_service(
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    notifications: NotificationService = Depends(get_notification_service),
):
    return OrderService(db, gateway=gateway, notifications=notifications)


def _raise_http(e: Exception):
    if isinstance(e, PermissionError):
        raise HTTPException(status_code=403, detail=str(e))
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValueError):
        raise HTTPException(status_code=400, detail=str(e))
    if isinstance(e, GatewayError):
        raise HTTPException(status_code=500, detail=str(e))
    raise e


@router.post("/create-order", response_model=CheckoutOut, status_code=201)
def create_order(
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """
    Checkout koszyka. Darmowe zamówienie kończy się od razu,
    płatne zwraca parametry bramki dla klienta.
    """
    try:
        return svc.create_order_from_cart(user.id)
    except (ValueError, PermissionError, GatewayError) as e:
        _raise_http(e)


@router.post("/create-direct-order", response_model=CheckoutOut, status_code=201)
def create_direct_order(
    payload: ItemIn,
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """
    Kup teraz - pojedynczy item z pominięciem koszyka.
    """
    try:
        return svc.create_direct_order(user.id, payload.item_type, payload.item_id)
    except (ValueError, PermissionError, GatewayError) as e:
        _raise_http(e)


@router.post("/verify-payment", response_model=VerifyPaymentOut)
def verify_payment(
    payload: VerifyPaymentIn,
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.verify_payment(
            user.id,
            payload.order_id,
            payload.razorpay_order_id,
            payload.razorpay_payment_id,
            payload.razorpay_signature,
        )
    except (ValueError, PermissionError, GatewayError) as e:
        _raise_http(e)


@router.post("/report-failure", response_model=OrderStatusOut)
def report_failure(
    payload: PaymentFailureIn,
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.report_payment_failure(user.id, payload.order_id, payload.reason)
    except (ValueError, PermissionError) as e:
        _raise_http(e)


@router.get("/my-orders", response_model=List[OrderOut])
def my_orders(
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    return svc.list_orders(user.id)


@router.get("/order/{order_ref}", response_model=OrderOut)
def get_order(
    order_ref: str,
    user: UserModel = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.get_order(user.id, order_ref)
    except (ValueError, PermissionError) as e:
        _raise_http(e)
