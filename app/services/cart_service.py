from decimal import Decimal
from typing import Any, Dict, Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.domain.constants import COURSE, ITEM_TYPES
from app.domain.errors import ConflictError, NotFoundError, ValidationError
from app.repos.cart_repo import CartRepo
from app.repos.catalog_repo import CatalogRepo
from app.services.purchase_service import PurchaseService
from app.utils.logging import get_logger

logger = get_logger(__name__)


def calculate_total(items: Iterable) -> Decimal:
    return sum((Decimal(i.price) * i.quantity for i in items), Decimal("0.00"))


def item_title(item) -> str:
    # Course ma title, StoreItem ma name
    return getattr(item, "title", None) or getattr(item, "name", "")


def validate_item_ref(item_type: str, item_id: int | None) -> None:
    if item_type not in ITEM_TYPES:
        raise ValidationError('Invalid item type. Must be "course" or "storeItem"')

    if not item_id:
        raise ValidationError("Item ID is required")


class CartService:
    """
    Use case'y dla domeny cart
    commands (add, remove, clear) modyfikują stan
    query (get, total) tylko odczyt; koszyk tworzony leniwie przy pierwszym dostępie
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.catalog = CatalogRepo(db)
        self.purchases = PurchaseService(db)

    #query - odczyt
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        self.repo.commit()

        items = self.repo.get_cart_items(cart.id)

        #dict przekształcany w jsona
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "items": [self._item_dict(i) for i in items],
            "total": calculate_total(items),
            "item_count": len(items),
        }

    def get_total(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        if not cart:
            return {"total": Decimal("0.00"), "item_count": 0}

        items = self.repo.get_cart_items(cart.id)
        return {"total": calculate_total(items), "item_count": len(items)}

    #commands
    def get_or_create_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)

        if cart:
            return cart

        try:
            created = self.repo.create_cart(CartModel(user_id=user_id))
        except IntegrityError:
            # równoległe pierwsze wejście, unikalny indeks carts.user_id
            self.repo.rollback()
            cart = self.repo.get_cart_by_user(user_id)
            if not cart:
                raise
            logger.info(f"Cart for user {user_id} created concurrently, using cart {cart.id}")
            return cart

        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    def add_item(self, user_id: int, item_type: str, item_id: int) -> Dict[str, Any]:
        validate_item_ref(item_type, item_id)

        # user nie może dodać czegoś co już posiada
        self.purchases.prevent_duplicate_purchase(user_id, item_id, item_type)

        item = self.catalog.get_item(item_type, item_id)
        if not item:
            raise NotFoundError("Course not found" if item_type == COURSE else "Store item not found")

        try:
            cart = self.get_or_create_cart(user_id)

            if self.repo.get_cart_item(cart.id, item_type, item_id):
                raise ConflictError("Item is already in your cart")

            # snapshot ceny z chwili dodania
            cart_item = self.repo.add_cart_item(
                CartItemModel(
                    cart_id=cart.id,
                    item_type=item_type,
                    item_id=item_id,
                    price=item.price,
                    quantity=1,
                    name=item_title(item),
                    thumbnail=item.thumbnail or "",
                    description=item.description or "",
                )
            )
            self.repo.commit()

        except IntegrityError as e:
            # równoległe dodanie tego samego itemu, unikalny indeks (cart_id, item_type, item_id)
            self.repo.rollback()
            raise ConflictError("Item is already in your cart") from e
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Added {item_type} {item_id} to cart {cart.id} at price {cart_item.price}")

        return {"message": "Item added to cart", "cart_item": self._item_dict(cart_item)}

    def remove_item(self, user_id: int, cart_item_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        if not cart:
            raise NotFoundError("Cart not found")

        cart_item = self.repo.get_cart_item_by_id(cart.id, cart_item_id)

        if not cart_item:
            raise NotFoundError("Cart item not found")

        try:
            self.repo.delete_cart_item(cart_item)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Removed cart item {cart_item_id} from cart {cart.id}")

        return {"message": "Item removed from cart"}

    def clear_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)

        if not cart:
            raise NotFoundError("Cart not found")

        try:
            removed = self.repo.clear_cart_items(cart.id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cleared {removed} item(s) from cart {cart.id}")

        return {"message": "Cart cleared successfully"}

    @staticmethod
    def _item_dict(i: CartItemModel) -> Dict[str, Any]:
        return {
            "id": i.id,
            "item_type": i.item_type,
            "item_id": i.item_id,
            "price": i.price,
            "quantity": i.quantity,
            "name": i.name,
            "thumbnail": i.thumbnail,
            "description": i.description,
        }
