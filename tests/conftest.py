import os

# przed importem app.* - settings czyta env przy imporcie
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "test_secret"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import app.data.models  # noqa: F401
from app.data.database import Base, get_db, make_engine
from app.data.models import CourseModel, StoreItemModel, UserModel
from app.domain.errors import GatewayError
from app.main import create_app
from app.services.notification_service import NotificationService, get_notification_service
from app.services.order_service import OrderService
from app.services.payment_gateway import (
    PaymentGateway,
    compute_signature,
    get_payment_gateway,
    to_minor_units,
)
from app.utils.security import create_access_token


class FakeGateway(PaymentGateway):
    """Deterministyczna bramka: order_fake_<n>, podpis tym samym HMAC co prawdziwa."""

    def __init__(self, fail: bool = False):
        super().__init__("rzp_test_key", "test_secret")
        self.fail = fail
        self.created = []

    def create_remote_order(self, amount, currency, receipt, notes=None):
        if self.fail:
            raise GatewayError("Failed to create payment gateway order: gateway unavailable")

        remote = {
            "id": f"order_fake_{len(self.created) + 1}",
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        self.created.append(remote)
        return remote

    def sign(self, gateway_order_id: str, gateway_payment_id: str) -> str:
        return compute_signature(gateway_order_id, gateway_payment_id, self.key_secret)


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifications():
    return MagicMock(spec=NotificationService)


@pytest.fixture
def order_service(db, gateway, notifications):
    return OrderService(db, gateway=gateway, notifications=notifications)


@pytest.fixture
def user(db):
    u = UserModel(name="Asha", email="asha@example.com")
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def other_user(db):
    u = UserModel(name="Ravi", email="ravi@example.com")
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def admin(db):
    u = UserModel(name="Admin", email="admin@example.com", is_admin=True)
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def course(db):
    c = CourseModel(
        title="Data Structures",
        description="Trees and graphs",
        instructor="Staff",
        price=Decimal("500"),
        is_free=False,
        category="programming",
        thumbnail="ds.png",
    )
    db.add(c)
    db.commit()
    return c


@pytest.fixture
def free_course(db):
    c = CourseModel(title="Intro", description="Basics", price=Decimal("0"), is_free=True, category="programming")
    db.add(c)
    db.commit()
    return c


@pytest.fixture
def free_store_item(db):
    item = StoreItemModel(
        name="Cheat Sheet",
        description="PDF",
        price=Decimal("0"),
        file_url="https://files.example.com/cheat.pdf",
        category="pdf",
    )
    db.add(item)
    db.commit()
    return item


@pytest.fixture
def store_item(db):
    item = StoreItemModel(
        name="Workbook",
        description="Problems",
        price=Decimal("299"),
        file_url="https://files.example.com/workbook.pdf",
        category="pdf",
    )
    db.add(item)
    db.commit()
    return item


def auth_headers(user: UserModel) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def client(session_factory, gateway, notifications):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notification_service] = lambda: notifications

    # nieobsłużone wyjątki mają wrócić jako JSON 500, nie wyjątek w teście
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def auth():
    return auth_headers


@pytest.fixture
def failing_gateway():
    return FakeGateway(fail=True)
