# app/services/payment_gateway.py
import hashlib
import hmac
import secrets
import string
import time
from abc import ABC, abstractmethod
from decimal import Decimal, ROUND_HALF_UP

import requests
from requests import RequestException

from app.domain.errors import GatewayError
from app.utils.settings import (
    GATEWAY_TIMEOUT_SECONDS,
    RAZORPAY_API_URL,
    RAZORPAY_KEY_ID,
    RAZORPAY_KEY_SECRET,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)

_ORDER_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_id() -> str:
    """ORD-<epoch ms>-<6 znaków>. Unikalność sprawdza OrderService, indeks w bazie jako backstop."""
    timestamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ORDER_ID_ALPHABET) for _ in range(6))
    return f"ORD-{timestamp}-{suffix}"


def to_minor_units(amount: Decimal) -> int:
    # 500.00 INR -> 50000 paise
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_signature(gateway_order_id: str, gateway_payment_id: str, secret: str) -> str:
    message = f"{gateway_order_id}|{gateway_payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class PaymentGateway(ABC):
    """
    Wąski interfejs bramki płatności:
    - create_remote_order: zdalne zamówienie, zwraca dict z id/amount/currency
    - verify_signature: czysta funkcja, bez I/O
    """

    def __init__(self, key_id: str | None, key_secret: str | None):
        self.key_id = key_id
        self.key_secret = key_secret

    @abstractmethod
    def create_remote_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> dict:
        """Zakłada zamówienie w bramce, zwraca odpowiedź z id, amount (minor units) i currency."""

    def verify_signature(
        self,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> bool:
        if not self.key_secret:
            logger.error("Gateway key secret not configured, rejecting signature")
            return False

        expected = compute_signature(gateway_order_id, gateway_payment_id, self.key_secret)
        # stała w czasie porównania
        return hmac.compare_digest(expected.encode(), (signature or "").encode())


class RazorpayGateway(PaymentGateway):
    # bez retry, błąd ma przerwać transakcję checkoutu

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        base_url: str | None = None,
        timeout: int = GATEWAY_TIMEOUT_SECONDS,
    ):
        super().__init__(key_id or RAZORPAY_KEY_ID, key_secret or RAZORPAY_KEY_SECRET)
        self.base_url = (base_url or RAZORPAY_API_URL).rstrip("/")
        self.timeout = timeout

    def create_remote_order(
        self,
        amount: Decimal,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> dict:
        if not self.key_id or not self.key_secret:
            raise GatewayError(
                "Razorpay credentials not configured. "
                "Please set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET"
            )

        url = f"{self.base_url}/orders"
        payload = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        logger.info(f"RazorpayGateway POST {url} receipt={receipt} amount={payload['amount']}")

        try:
            resp = requests.post(
                url,
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except RequestException as e:
            logger.error(f"Razorpay order creation failed for {receipt}: {e}")
            raise GatewayError(f"Failed to create payment gateway order: {e}") from e

        return resp.json()


def get_payment_gateway() -> PaymentGateway:
    return RazorpayGateway()
