from decimal import Decimal
from unittest.mock import patch

from app.data.models import OrderModel
from app.utils.security import create_access_token


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_missing_token(client):
    resp = client.get("/cart")
    assert resp.status_code == 401
    assert resp.json() == {"message": "Not authorized, no token"}


def test_invalid_token(client):
    resp = client.get("/cart", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Not authorized, token failed"}


def test_token_for_unknown_user(client):
    resp = client.get("/cart", headers={"Authorization": f"Bearer {create_access_token(9999)}"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "User not found"}


def test_register_and_me(client):
    resp = client.post("/users/", json={"name": "Meera", "email": "Meera@Example.com"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["email"] == "meera@example.com"
    assert body["access_token"]

    me = client.get("/users/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["id"] == body["id"]

    dup = client.post("/users/", json={"name": "Meera", "email": "meera@example.com"})
    assert dup.status_code == 400
    assert dup.json() == {"message": "User already exists"}


def test_cart_endpoints(client, auth, user, course, store_item):
    headers = auth(user)

    added = client.post("/cart/add-item", json={"itemType": "course", "itemId": course.id}, headers=headers)
    assert added.status_code == 201
    assert added.json()["message"] == "Item added to cart"
    assert Decimal(added.json()["cart_item"]["price"]) == Decimal("500")

    client.post("/cart/add-item", json={"itemType": "storeItem", "itemId": store_item.id}, headers=headers)

    dup = client.post("/cart/add-item", json={"itemType": "course", "itemId": course.id}, headers=headers)
    assert dup.status_code == 400
    assert dup.json() == {"message": "Item is already in your cart"}

    total = client.get("/cart/total", headers=headers).json()
    assert Decimal(total["total"]) == Decimal("799")
    assert total["item_count"] == 2

    cart = client.get("/cart", headers=headers).json()
    cart_item_id = next(i["id"] for i in cart["items"] if i["item_type"] == "course")

    removed = client.delete(f"/cart/remove-item/{cart_item_id}", headers=headers)
    assert removed.status_code == 200
    assert client.delete(f"/cart/remove-item/{cart_item_id}", headers=headers).status_code == 404

    cleared = client.delete("/cart", headers=headers)
    assert cleared.json() == {"message": "Cart cleared successfully"}
    assert client.get("/cart/total", headers=headers).json()["item_count"] == 0


def test_add_item_errors(client, auth, user):
    headers = auth(user)

    bad_type = client.post("/cart/add-item", json={"itemType": "bundle", "itemId": 1}, headers=headers)
    assert bad_type.status_code == 400
    assert bad_type.json() == {"message": 'Invalid item type. Must be "course" or "storeItem"'}

    missing = client.post("/cart/add-item", json={"itemType": "course", "itemId": 12345}, headers=headers)
    assert missing.status_code == 404
    assert missing.json() == {"message": "Course not found"}


def test_checkout_and_verify_flow(client, auth, gateway, notifications, user, course, free_store_item):
    headers = auth(user)
    client.post("/cart/add-item", json={"itemType": "course", "itemId": course.id}, headers=headers)
    client.post("/cart/add-item", json={"itemType": "storeItem", "itemId": free_store_item.id}, headers=headers)

    created = client.post("/payments/create-order", headers=headers)
    assert created.status_code == 201
    checkout = created.json()
    assert checkout["is_free"] is False
    assert checkout["amount"] == 50000
    assert checkout["razorpay_key_id"] == "rzp_test_key"

    verify_body = {
        "orderId": checkout["order"]["order_id"],
        "razorpayOrderId": checkout["razorpay_order_id"],
        "razorpayPaymentId": "pay_http_1",
        "razorpaySignature": gateway.sign(checkout["razorpay_order_id"], "pay_http_1"),
    }
    verified = client.post("/payments/verify-payment", json=verify_body, headers=headers)
    assert verified.status_code == 200
    assert verified.json()["message"] == "Payment verified successfully"
    assert verified.json()["payment"]["razorpay_payment_id"] == "pay_http_1"

    again = client.post("/payments/verify-payment", json=verify_body, headers=headers)
    assert again.json()["message"] == "Payment already verified"

    orders = client.get("/payments/my-orders", headers=headers).json()
    assert len(orders) == 1
    assert orders[0]["payment_status"] == "completed"
    assert orders[0]["payment"]["status"] == "completed"

    one = client.get(f"/payments/order/{checkout['order']['order_id']}", headers=headers)
    assert one.status_code == 200

    purchases = client.get("/catalog/my-purchases", headers=headers).json()
    assert {(p["item_type"], p["item_id"]) for p in purchases} == {
        ("course", course.id),
        ("storeItem", free_store_item.id),
    }
    courses_only = client.get("/catalog/my-purchases?item_type=course", headers=headers).json()
    assert len(courses_only) == 1

    assert client.get("/cart", headers=headers).json()["items"] == []
    assert client.get(f"/catalog/courses/{course.id}").json()["enrolled_count"] == 1
    notifications.send_order_completed.assert_called_once()


def test_verify_with_bad_signature(client, auth, user, course):
    headers = auth(user)
    checkout = client.post(
        "/payments/create-direct-order", json={"itemType": "course", "itemId": course.id}, headers=headers
    ).json()

    resp = client.post(
        "/payments/verify-payment",
        json={
            "orderId": checkout["order"]["order_id"],
            "razorpayOrderId": checkout["razorpay_order_id"],
            "razorpayPaymentId": "pay_1",
            "razorpaySignature": "deadbeef",
        },
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json() == {"message": "Invalid payment signature"}


def test_verify_missing_fields(client, auth, user):
    resp = client.post("/payments/verify-payment", json={"orderId": "ORD-1-ABCDEF"}, headers=auth(user))
    assert resp.status_code == 400
    assert resp.json() == {"message": "Missing required payment details"}


def test_create_order_with_empty_cart(client, auth, user):
    headers = auth(user)
    assert client.post("/payments/create-order", headers=headers).status_code == 404

    client.get("/cart", headers=headers)
    resp = client.post("/payments/create-order", headers=headers)
    assert resp.status_code == 400
    assert resp.json() == {"message": "Cart is empty"}


def test_gateway_failure_is_500(client, auth, gateway, user, course):
    gateway.fail = True
    resp = client.post(
        "/payments/create-direct-order", json={"itemType": "course", "itemId": course.id}, headers=auth(user)
    )
    assert resp.status_code == 500
    assert resp.json()["message"].startswith("Failed to create payment gateway order")


def test_free_direct_order_and_duplicate(client, auth, user, free_course):
    headers = auth(user)
    body = {"itemType": "course", "itemId": free_course.id}

    first = client.post("/payments/create-direct-order", json=body, headers=headers)
    assert first.status_code == 201
    assert first.json()["is_free"] is True

    second = client.post("/payments/create-direct-order", json=body, headers=headers)
    assert second.status_code == 400
    assert second.json() == {"message": "You have already purchased this course"}


def test_report_failure_endpoint(client, auth, user, other_user, store_item):
    headers = auth(user)
    checkout = client.post(
        "/payments/create-direct-order", json={"itemType": "storeItem", "itemId": store_item.id}, headers=headers
    ).json()
    body = {"orderId": checkout["order"]["order_id"], "reason": "user closed checkout"}

    assert client.post("/payments/report-failure", json=body, headers=auth(other_user)).status_code == 404

    resp = client.post("/payments/report-failure", json=body, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["order"]["payment_status"] == "pending"
    assert resp.json()["order"]["failure_reason"] == "user closed checkout"


def test_request_validation_is_400(client, auth, user):
    resp = client.post("/payments/report-failure", json={}, headers=auth(user))
    assert resp.status_code == 400
    assert "orderId" in resp.json()["message"]


def test_order_of_other_user_is_404(client, auth, user, other_user, course):
    checkout = client.post(
        "/payments/create-direct-order", json={"itemType": "course", "itemId": course.id}, headers=auth(user)
    ).json()

    resp = client.get(f"/payments/order/{checkout['order']['order_id']}", headers=auth(other_user))
    assert resp.status_code == 404
    assert resp.json() == {"message": "Order not found"}


def test_catalog_admin_only_create(client, auth, user, admin):
    payload = {"title": "Algorithms", "price": "100"}

    denied = client.post("/catalog/courses", json=payload, headers=auth(user))
    assert denied.status_code == 401
    assert denied.json() == {"message": "Not authorized as an admin"}

    created = client.post("/catalog/courses", json=payload, headers=auth(admin))
    assert created.status_code == 201
    assert created.json()["is_free"] is False
    assert Decimal(created.json()["price"]) == Decimal("100")

    assert any(c["title"] == "Algorithms" for c in client.get("/catalog/courses").json())
    assert client.get("/catalog/courses/9999").status_code == 404


def test_my_purchases_rejects_unknown_type(client, auth, user):
    resp = client.get("/catalog/my-purchases?item_type=ebook", headers=auth(user))
    assert resp.status_code == 400


def test_unhandled_error_is_json_500(client, auth, db, user, other_user, course):
    db.add(OrderModel(order_id="ORD-1-TAKEN1", user_id=other_user.id, total_amount=Decimal("1")))
    db.commit()

    with patch("app.services.order_service.generate_order_id", return_value="ORD-1-TAKEN1"):
        resp = client.post(
            "/payments/create-direct-order", json={"itemType": "course", "itemId": course.id}, headers=auth(user)
        )

    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json() == {"message": "Could not generate a unique order id"}


def test_enrollments_after_purchase(client, auth, gateway, user, course, free_course):
    headers = auth(user)

    before = client.get(f"/enrollments/check/{course.id}", headers=headers)
    assert before.status_code == 200
    assert before.json() == {"enrolled": False, "enrollment": None}

    client.post("/payments/create-direct-order", json={"itemType": "course", "itemId": free_course.id}, headers=headers)
    checkout = client.post(
        "/payments/create-direct-order", json={"itemType": "course", "itemId": course.id}, headers=headers
    ).json()
    client.post(
        "/payments/verify-payment",
        json={
            "orderId": checkout["order"]["order_id"],
            "razorpayOrderId": checkout["razorpay_order_id"],
            "razorpayPaymentId": "pay_enroll",
            "razorpaySignature": gateway.sign(checkout["razorpay_order_id"], "pay_enroll"),
        },
        headers=headers,
    )

    check = client.get(f"/enrollments/check/{course.id}", headers=headers).json()
    assert check["enrolled"] is True
    assert check["enrollment"]["progress"] == 0
    assert check["enrollment"]["is_paid"] is True
    assert check["enrollment"]["course"]["title"] == "Data Structures"

    mine = client.get("/enrollments/my-courses", headers=headers).json()
    assert {e["course_id"] for e in mine} == {course.id, free_course.id}
    assert all(e["course"] is not None for e in mine)


def test_enrollments_are_per_user(client, auth, user, other_user, free_course):
    client.post(
        "/payments/create-direct-order", json={"itemType": "course", "itemId": free_course.id}, headers=auth(user)
    )

    assert client.get("/enrollments/my-courses", headers=auth(other_user)).json() == []
    assert client.get(f"/enrollments/check/{free_course.id}", headers=auth(other_user)).json()["enrolled"] is False
    assert client.get("/enrollments/my-courses").status_code == 401
