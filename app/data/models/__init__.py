#import wszystkich modeli żeby SQLAlchemy je zarejestrował w base metadata

from app.data.models.user import UserModel
from app.data.models.course import CourseModel
from app.data.models.store_item import StoreItemModel
from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.order import OrderModel, OrderItemModel
from app.data.models.payment import PaymentModel
from app.data.models.user_purchase import UserPurchaseModel
from app.data.models.enrollment import EnrollmentModel

__all__ = [
    "UserModel",
    "CourseModel",
    "StoreItemModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "PaymentModel",
    "UserPurchaseModel",
    "EnrollmentModel",
]
