# app/services/order_service.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.order import OrderItemModel, OrderModel
from app.data.models.payment import PaymentModel
from app.domain.constants import (
    COMPLETED,
    COURSE,
    FAILED,
    METHOD_FREE,
    METHOD_GATEWAY,
    PENDING,
)
from app.domain.errors import ConflictError, GatewayError, NotFoundError, ValidationError
from app.repos.cart_repo import CartRepo
from app.repos.catalog_repo import CatalogRepo
from app.repos.order_repo import OrderRepo
from app.services.access_grantor import AccessGrantor
from app.services.cart_service import calculate_total, item_title, validate_item_ref
from app.services.notification_service import NotificationService
from app.services.payment_gateway import PaymentGateway, RazorpayGateway, generate_order_id, to_minor_units
from app.services.purchase_service import PurchaseService, item_type_name
from app.utils.settings import CURRENCY, MY_ORDERS_LIMIT, PENDING_ORDER_TTL_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)

ORDER_ID_ATTEMPTS = 5
PRICE_TOLERANCE = Decimal("0.01")


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień i płatności.

    Każda komenda działa w jednej transakcji sesji: albo jeden commit na końcu,
    albo rollback całości (łącznie z błędem bramki płatności).
    """

    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway | None = None,
        notifications: NotificationService | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.catalog = CatalogRepo(db)
        self.purchases = PurchaseService(db)
        self.grantor = AccessGrantor(db)
        self.gateway = gateway or RazorpayGateway()
        self.notifications = notifications or NotificationService()

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_order_from_cart(self, user_id: int) -> Dict[str, Any]:
        """
        Use Case: checkout koszyka.

        1. Rewalidacja pozycji (istnienie + korekta nieaktualnej ceny)
        2. Sprawdzenie posiadania dla każdej pozycji przed jakimkolwiek zapisem
        3. Total, order_id
        4. Darmowe -> completed + grant + czyszczenie koszyka
           Płatne -> pending + zdalne zamówienie w bramce
        """
        try:
            cart = self.carts.get_cart_by_user(user_id)
            if not cart:
                raise NotFoundError("Cart not found")

            cart_items = self.carts.get_cart_items(cart.id)
            if not cart_items:
                raise ValidationError("Cart is empty")

            lines = self._revalidate_cart_items(cart_items)

            for item in cart_items:
                if self.purchases.owns(user_id, item.item_id, item.item_type):
                    raise ConflictError(
                        f"You already own one of the {item_type_name(item.item_type)}s in your cart"
                    )

            total = calculate_total(cart_items)
            order = self._create_order(user_id, lines, total)

            if order.payment_status == COMPLETED:
                self.grantor.grant(order)
                self.carts.clear_cart_items(cart.id)
                self.db.commit()
                logger.info(f"Free order {order.order_id} completed for user {user_id}")
                self.notifications.send_order_completed(user_id, order.order_id)

                return {
                    "message": "Order completed successfully (free items)",
                    "order": self.order_dict(order),
                    "is_free": True,
                }

            remote = self._create_remote_order(order, {"userId": str(user_id), "orderId": order.order_id})
            self.db.commit()

        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Checkout conflict for user {user_id}: {e}")
            raise ConflictError("Order could not be created due to a conflicting update, please retry") from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Order {order.order_id} created from cart {cart.id}, awaiting payment")
        return self._checkout_response(order, remote)

    def create_direct_order(self, user_id: int, item_type: str, item_id: int) -> Dict[str, Any]:
        """
        Use Case: kup teraz (z pominięciem koszyka), zawsze quantity 1.
        Koszyk nie jest czyszczony przy darmowym zamówieniu.
        """
        validate_item_ref(item_type, item_id)

        try:
            self.purchases.prevent_duplicate_purchase(user_id, item_id, item_type)

            item = self.catalog.get_item(item_type, item_id)
            if not item:
                raise NotFoundError("Course not found" if item_type == COURSE else "Store item not found")

            line = {
                "item_type": item_type,
                "item_id": item_id,
                "name": item_title(item),
                "price": Decimal(item.price),
                "quantity": 1,
                "thumbnail": item.thumbnail or "",
            }
            order = self._create_order(user_id, [line], line["price"])

            if order.payment_status == COMPLETED:
                self.grantor.grant(order)
                self.db.commit()
                logger.info(f"Free direct order {order.order_id} completed for user {user_id}")
                self.notifications.send_order_completed(user_id, order.order_id)

                return {
                    "message": "Order completed successfully (free item)",
                    "order": self.order_dict(order),
                    "is_free": True,
                }

            remote = self._create_remote_order(
                order,
                {
                    "userId": str(user_id),
                    "orderId": order.order_id,
                    "itemType": item_type,
                    "itemId": str(item_id),
                },
            )
            self.db.commit()

        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Direct order conflict for user {user_id}: {e}")
            raise ConflictError("Order could not be created due to a conflicting update, please retry") from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Direct order {order.order_id} created for {item_type} {item_id}, awaiting payment")
        return self._checkout_response(order, remote)

    def verify_payment(
        self,
        user_id: int,
        order_id: str,
        gateway_order_id: str,
        gateway_payment_id: str,
        gateway_signature: str,
    ) -> Dict[str, Any]:
        """
        Use Case: weryfikacja callbacku z bramki.

        podpis -> zamówienie właściciela -> idempotencja (completed) -> tylko pending
        -> zgodność gateway_order_id -> completed + Payment + grant + czyszczenie koszyka
        Wszystko albo nic.
        """
        if not (order_id and gateway_order_id and gateway_payment_id and gateway_signature):
            raise ValidationError("Missing required payment details")

        try:
            if not self.gateway.verify_signature(gateway_order_id, gateway_payment_id, gateway_signature):
                logger.warning(f"Invalid payment signature for order {order_id} (user {user_id})")
                raise ValidationError("Invalid payment signature")

            order = self.repo.get_user_order(order_id, user_id)
            if not order:
                raise NotFoundError("Order not found")

            # powtórzony callback
            if order.payment_status == COMPLETED:
                logger.info(f"Order {order_id} already verified, skipping")
                return {
                    "message": "Payment already verified",
                    "order": self.order_dict(order),
                    "payment": None,
                }

            if order.payment_status != PENDING:
                raise ValidationError(f"Order status is {order.payment_status}, cannot verify payment")

            # callback jednego zamówienia odtworzony na innym
            if order.gateway_order_id != gateway_order_id:
                logger.warning(
                    f"Gateway order id mismatch for {order_id}: "
                    f"stored={order.gateway_order_id} received={gateway_order_id}"
                )
                raise ValidationError("Razorpay order ID mismatch")

            completed_at = datetime.now(timezone.utc)

            order.payment_status = COMPLETED
            order.gateway_payment_id = gateway_payment_id
            order.gateway_signature = gateway_signature
            order.failure_reason = None

            payment = self.repo.create_payment(
                PaymentModel(
                    order_id=order.id,
                    user_id=user_id,
                    amount=order.total_amount,
                    currency=order.currency,
                    status=COMPLETED,
                    payment_method=METHOD_GATEWAY,
                    gateway_order_id=gateway_order_id,
                    gateway_payment_id=gateway_payment_id,
                    gateway_signature=gateway_signature,
                    attempt_number=1,
                    completed_at=completed_at,
                )
            )
            order.payment_id = payment.id

            self.grantor.grant(order, completed_at=completed_at)

            cart = self.carts.get_cart_by_user(user_id)
            if cart:
                self.carts.clear_cart_items(cart.id)

            self.db.commit()

        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Payment verification conflict for order {order_id}: {e}")
            raise ConflictError("Payment could not be recorded due to a conflicting update") from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Payment {gateway_payment_id} verified for order {order_id}")
        self.notifications.send_order_completed(user_id, order.order_id)

        return {
            "message": "Payment verified successfully",
            "order": self.order_dict(order),
            "payment": self.payment_dict(payment),
        }

    def report_payment_failure(self, user_id: int, order_id: str, reason: str | None = None) -> Dict[str, Any]:
        """
        Use Case: klient zgłasza nieudaną próbę płatności.

        Zamówienie zostaje pending, bo zamówienie w bramce nadal przyjmuje kolejne próby.
        Zapisujemy tylko powód ostatniej porażki, status failed nadaje wyłącznie wygaszanie.
        """
        try:
            order = self.repo.get_user_order(order_id, user_id)
            if not order:
                raise NotFoundError("Order not found")

            if order.payment_status != PENDING:
                raise ValidationError(f"Order status is {order.payment_status}, cannot record payment failure")

            order.failure_reason = reason or "Payment failed"
            self.db.commit()

        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Order {order_id} payment attempt failed: {order.failure_reason}")

        return {"message": "Payment failure recorded", "order": self.order_dict(order)}

    def expire_stale_orders(self, now: datetime | None = None) -> int:
        """
        pending starsze niż PENDING_ORDER_TTL_SECONDS -> failed (jedyne przejście do failed)
        """
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(seconds=PENDING_ORDER_TTL_SECONDS)

        try:
            orders = self.repo.list_stale_pending(cutoff)
            for order in orders:
                order.payment_status = FAILED
                order.failure_reason = "expired"
            self.db.commit()

        except Exception:
            self.db.rollback()
            raise

        return len(orders)

    # =====================================================
    # QUERY
    # =====================================================
    def list_orders(self, user_id: int) -> List[Dict[str, Any]]:
        return [
            self.order_dict(o, with_payment=True)
            for o in self.repo.list_user_orders(user_id, MY_ORDERS_LIMIT)
        ]

    def get_order(self, user_id: int, order_ref: str) -> Dict[str, Any]:
        order = self.repo.find_user_order(order_ref, user_id)

        if not order:
            raise NotFoundError("Order not found")

        return self.order_dict(order, with_payment=True)

    # =====================================================
    # HELPERS
    # =====================================================
    def _revalidate_cart_items(self, cart_items) -> List[Dict[str, Any]]:
        """
        Sprawdza że każdy item nadal istnieje w katalogu i poprawia nieaktualny snapshot ceny.
        Zwraca pozycje zamówienia (snapshot nazwy, ceny, miniatury).
        """
        errors = []
        lines = []

        for cart_item in cart_items:
            item = self.catalog.get_item(cart_item.item_type, cart_item.item_id)

            if not item:
                label = "Course" if cart_item.item_type == COURSE else "Store item"
                errors.append(f"{label} with ID {cart_item.item_id} not found")
                continue

            current_price = Decimal(item.price)
            if abs(current_price - Decimal(cart_item.price)) > PRICE_TOLERANCE:
                logger.info(
                    f"Price of {cart_item.item_type} {cart_item.item_id} changed "
                    f"{cart_item.price} -> {current_price}, updating cart snapshot"
                )
                cart_item.price = current_price

            lines.append(
                {
                    "item_type": cart_item.item_type,
                    "item_id": cart_item.item_id,
                    "name": item_title(item),
                    "price": Decimal(cart_item.price),
                    "quantity": cart_item.quantity,
                    "thumbnail": item.thumbnail or "",
                }
            )

        if errors:
            raise ValidationError(f"Invalid items in cart: {', '.join(errors)}")

        return lines

    def _new_order_id(self) -> str:
        for _ in range(ORDER_ID_ATTEMPTS):
            candidate = generate_order_id()
            if not self.repo.order_id_exists(candidate):
                return candidate
            logger.warning(f"Order id collision on {candidate}, regenerating")

        raise RuntimeError("Could not generate a unique order id")

    def _create_order(self, user_id: int, lines: List[Dict[str, Any]], total: Decimal) -> OrderModel:
        is_free = total == Decimal("0")

        order = OrderModel(
            order_id=self._new_order_id(),
            user_id=user_id,
            total_amount=total,
            currency=CURRENCY,
            payment_status=COMPLETED if is_free else PENDING,
            payment_method=METHOD_FREE if is_free else METHOD_GATEWAY,
            items=[OrderItemModel(**line) for line in lines],
        )
        return self.repo.create_order(order)

    def _create_remote_order(self, order: OrderModel, notes: Dict[str, str]) -> Dict[str, Any]:
        try:
            remote = self.gateway.create_remote_order(
                order.total_amount,
                order.currency,
                order.order_id,
                notes,
            )
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayError(f"Failed to create payment gateway order: {e}") from e

        order.gateway_order_id = remote["id"]
        self.db.flush()
        return remote

    def _checkout_response(self, order: OrderModel, remote: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "message": "Order created successfully",
            "order": self.order_dict(order),
            "razorpay_order_id": remote["id"],
            "razorpay_key_id": self.gateway.key_id,
            "amount": remote.get("amount", to_minor_units(order.total_amount)),
            "currency": remote.get("currency", order.currency),
            "is_free": False,
        }

    @staticmethod
    def order_dict(order: OrderModel, with_payment: bool = False) -> Dict[str, Any]:
        data = {
            "id": order.id,
            "order_id": order.order_id,
            "user_id": order.user_id,
            "items": [
                {
                    "item_type": i.item_type,
                    "item_id": i.item_id,
                    "name": i.name,
                    "price": i.price,
                    "quantity": i.quantity,
                    "thumbnail": i.thumbnail,
                }
                for i in order.items
            ],
            "total_amount": order.total_amount,
            "currency": order.currency,
            "payment_status": order.payment_status,
            "payment_method": order.payment_method,
            "razorpay_order_id": order.gateway_order_id,
            "razorpay_payment_id": order.gateway_payment_id,
            "failure_reason": order.failure_reason,
            "created_at": order.created_at,
        }
        if with_payment:
            data["payment"] = OrderService.payment_dict(order.payment) if order.payment else None
        return data

    @staticmethod
    def payment_dict(payment: PaymentModel) -> Dict[str, Any]:
        return {
            "id": payment.id,
            "amount": payment.amount,
            "currency": payment.currency,
            "status": payment.status,
            "payment_method": payment.payment_method,
            "razorpay_order_id": payment.gateway_order_id,
            "razorpay_payment_id": payment.gateway_payment_id,
            "completed_at": payment.completed_at,
        }
