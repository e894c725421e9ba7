"""Unit tests for the payment gateway adapter."""

import re
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.domain.errors import GatewayError
from app.services.payment_gateway import (
    PaymentGateway,
    RazorpayGateway,
    compute_signature,
    generate_order_id,
    to_minor_units,
)


def test_generate_order_id_format():
    order_id = generate_order_id()
    assert re.fullmatch(r"ORD-\d{13}-[A-Z0-9]{6}", order_id)


def test_generate_order_id_is_random():
    assert len({generate_order_id() for _ in range(50)}) == 50


@pytest.mark.parametrize(
    "amount, expected",
    [
        (Decimal("500"), 50000),
        (Decimal("499.99"), 49999),
        (Decimal("0.005"), 1),
        (Decimal("0"), 0),
    ],
)
def test_to_minor_units(amount, expected):
    assert to_minor_units(amount) == expected


def test_verify_signature_accepts_valid_signature():
    gw = RazorpayGateway(key_id="rzp_test_key", key_secret="s3cret")
    signature = compute_signature("order_abc", "pay_xyz", "s3cret")

    assert gw.verify_signature("order_abc", "pay_xyz", signature) is True


def test_verify_signature_rejects_tampered_signature():
    gw = RazorpayGateway(key_id="rzp_test_key", key_secret="s3cret")
    signature = compute_signature("order_abc", "pay_xyz", "s3cret")
    tampered = ("0" if signature[0] != "0" else "1") + signature[1:]

    assert gw.verify_signature("order_abc", "pay_xyz", tampered) is False


def test_verify_signature_rejects_signature_for_other_payment():
    gw = RazorpayGateway(key_id="rzp_test_key", key_secret="s3cret")
    signature = compute_signature("order_abc", "pay_other", "s3cret")

    assert gw.verify_signature("order_abc", "pay_xyz", signature) is False


def test_verify_signature_without_secret_is_false():
    gw = RazorpayGateway(key_id="rzp_test_key", key_secret="s3cret")
    gw.key_secret = None

    assert gw.verify_signature("order_abc", "pay_xyz", "whatever") is False


def test_create_remote_order_posts_minor_units():
    gw = RazorpayGateway(key_id="rzp_test_key", key_secret="s3cret", base_url="https://gw.test/v1/")
    response = MagicMock()
    response.json.return_value = {"id": "order_123", "amount": 50000, "currency": "INR"}

    with patch("app.services.payment_gateway.requests.post", return_value=response) as post:
        remote = gw.create_remote_order(Decimal("500"), "INR", "ORD-1-ABCDEF", {"userId": "7"})

    assert remote["id"] == "order_123"
    post.assert_called_once()
    args, kwargs = post.call_args
    assert args[0] == "https://gw.test/v1/orders"
    assert kwargs["json"] == {
        "amount": 50000,
        "currency": "INR",
        "receipt": "ORD-1-ABCDEF",
        "notes": {"userId": "7"},
    }
    assert kwargs["auth"] == ("rzp_test_key", "s3cret")


def test_create_remote_order_wraps_http_errors():
    gw = RazorpayGateway(key_id="rzp_test_key", key_secret="s3cret")

    with patch(
        "app.services.payment_gateway.requests.post",
        side_effect=requests.ConnectionError("connection refused"),
    ) as post:
        with pytest.raises(GatewayError, match="Failed to create payment gateway order"):
            gw.create_remote_order(Decimal("10"), "INR", "ORD-1-ABCDEF")

    # bez retry
    assert post.call_count == 1


def test_create_remote_order_requires_credentials():
    gw = RazorpayGateway(key_id="rzp_test_key", key_secret="s3cret")
    gw.key_id = None

    with pytest.raises(GatewayError, match="credentials not configured"):
        gw.create_remote_order(Decimal("10"), "INR", "ORD-1-ABCDEF")


def test_gateway_interface_requires_remote_order():
    with pytest.raises(TypeError):
        PaymentGateway("rzp_test_key", "s3cret")

    class SigningOnly(PaymentGateway):
        def create_remote_order(self, amount, currency, receipt, notes=None):
            return {"id": "order_local", "amount": to_minor_units(amount), "currency": currency}

    gw = SigningOnly("rzp_test_key", "s3cret")
    assert gw.create_remote_order(Decimal("1.50"), "INR", "ORD-1-ABCDEF")["amount"] == 150
    assert gw.verify_signature("order_local", "pay_1", compute_signature("order_local", "pay_1", "s3cret"))
