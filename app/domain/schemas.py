# app/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime


class CamelInModel(BaseModel):
    """Wejście z klienta w camelCase, nazwy pól Pythona też akceptowane."""

    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------- users

class UserCreate(BaseModel):
    """Schema dla rejestracji użytkownika."""

    name: str = Field(..., min_length=1, max_length=100, description="Imię użytkownika")
    email: str = Field(..., min_length=3, max_length=200, pattern=r"^[^@\s]+@[^@\s]+$")


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    is_admin: bool
    purchase_count: int

    model_config = ConfigDict(from_attributes=True)


class UserTokenOut(UserRead):
    access_token: str
    token_type: str = "bearer"


# ---------------------------------------------------------------- catalog

class CourseIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    instructor: str = ""
    price: Decimal = Field(Decimal("0"), ge=0)
    category: str = ""
    thumbnail: str = ""


class CourseOut(BaseModel):
    id: int
    title: str
    description: str
    instructor: str
    price: Decimal
    is_free: bool
    category: str
    thumbnail: str
    enrolled_count: int

    model_config = ConfigDict(from_attributes=True)


class StoreItemIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: Decimal = Field(..., ge=0)
    file_url: str = Field(..., min_length=1)
    category: str = ""
    thumbnail: str = ""


class StoreItemOut(BaseModel):
    id: int
    name: str
    description: str
    price: Decimal
    category: str
    thumbnail: str
    purchase_count: int
    last_purchased_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PurchaseOut(BaseModel):
    id: int
    item_type: str
    item_id: int
    order_id: int
    purchased_at: datetime
    expires_at: datetime | None = None
    is_active: bool


class EnrollmentOut(BaseModel):
    id: int
    course_id: int
    progress: int
    is_paid: bool
    order_id: int | None = None
    enrolled_at: datetime
    purchased_at: datetime | None = None
    course: CourseOut | None = None

    model_config = ConfigDict(from_attributes=True)


class EnrollmentCheckOut(BaseModel):
    enrolled: bool
    enrollment: EnrollmentOut | None = None


# ---------------------------------------------------------------- cart

class ItemIn(CamelInModel):
    """Referencja do itemu katalogu (koszyk i kup teraz)."""

    item_type: str | None = Field(None, alias="itemType", description='"course" albo "storeItem"')
    item_id: int | None = Field(None, alias="itemId")


class CartItemOut(BaseModel):
    id: int
    item_type: str
    item_id: int
    price: Decimal
    quantity: int
    name: str
    thumbnail: str
    description: str


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    items: List[CartItemOut]
    total: Decimal
    item_count: int


class CartTotalOut(BaseModel):
    total: Decimal
    item_count: int


class CartItemAddedOut(BaseModel):
    message: str
    cart_item: CartItemOut


class MessageOut(BaseModel):
    message: str


# ---------------------------------------------------------------- orders / payments

class OrderItemOut(BaseModel):
    item_type: str
    item_id: int
    name: str
    price: Decimal
    quantity: int
    thumbnail: str


class PaymentOut(BaseModel):
    id: int
    amount: Decimal
    currency: str
    status: str
    payment_method: str
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    completed_at: datetime | None = None


class OrderOut(BaseModel):
    id: int
    order_id: str
    user_id: int
    items: List[OrderItemOut]
    total_amount: Decimal
    currency: str
    payment_status: str
    payment_method: str
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    failure_reason: str | None = None
    created_at: datetime
    payment: PaymentOut | None = None


class CheckoutOut(BaseModel):
    message: str
    order: OrderOut
    is_free: bool
    # tylko dla płatnych zamówień
    razorpay_order_id: str | None = None
    razorpay_key_id: str | None = None
    amount: int | None = Field(None, description="Kwota w groszach/paisach")
    currency: str | None = None


class VerifyPaymentIn(CamelInModel):
    order_id: str | None = Field(None, alias="orderId")
    razorpay_order_id: str | None = Field(None, alias="razorpayOrderId")
    razorpay_payment_id: str | None = Field(None, alias="razorpayPaymentId")
    razorpay_signature: str | None = Field(None, alias="razorpaySignature")


class VerifyPaymentOut(BaseModel):
    message: str
    order: OrderOut
    payment: PaymentOut | None = None


class PaymentFailureIn(CamelInModel):
    order_id: str = Field(..., alias="orderId", min_length=1)
    reason: str | None = Field(None, max_length=500)


class OrderStatusOut(BaseModel):
    message: str
    order: OrderOut
