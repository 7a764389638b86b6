"""Integration tests for the checkout endpoints via TestClient."""

USER = {"X-User-Id": "user-001"}
OTHER_USER = {"X-User-Id": "user-002"}
ADDRESS = {"address": "1 Main St", "city": "Springfield", "postalCode": "62701", "country": "US"}


def _open(client, headers=USER, **overrides):
    body = {
        "checkoutItems": [
            {"productId": "prod-shirt", "name": "Classic Shirt", "price": 25.0, "quantity": 2, "size": "M"},
            {"productId": "prod-hat", "name": "Wool Hat", "price": 10.0, "quantity": 1},
        ],
        "shippingAddress": ADDRESS,
        "paymentMethod": "Paypal",
        "totalPrice": 60.0,
    }
    body.update(overrides)
    return client.post("/checkout", json=body, headers=headers)


class TestOpenCheckout:
    def test_created(self, client, catalogue):
        response = _open(client)
        assert response.status_code == 201

        body = response.json()
        assert body["userId"] == "user-001"
        assert body["isPaid"] is False
        assert body["paymentStatus"] == "pending"
        assert body["state"] == "created"
        assert body["shippingAddress"]["postalCode"] == "62701"
        assert len(body["checkoutItems"]) == 2

    def test_requires_caller(self, client, catalogue):
        response = _open(client, headers={})
        assert response.status_code == 401

    def test_empty_items(self, client, catalogue):
        response = _open(client, checkoutItems=[])
        assert response.status_code == 400
        assert response.json()["kind"] == "EmptyCheckout"

    def test_unknown_product(self, client, catalogue):
        response = _open(client, checkoutItems=[{"productId": "ghost", "price": 60.0, "quantity": 1}])
        assert response.status_code == 400
        assert response.json()["kind"] == "UnknownProduct"

    def test_invalid_line(self, client, catalogue):
        response = _open(client, checkoutItems=[{"productId": "prod-hat", "price": 10.0, "quantity": 0}])
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidLineItem"

    def test_from_cart(self, client, catalogue):
        client.post("/cart", json={"productId": "prod-hat", "quantity": 2}, headers=USER)

        response = client.post(
            "/checkout/from-cart",
            json={"shippingAddress": ADDRESS, "paymentMethod": "Credit Card"},
            headers=USER,
        )
        assert response.status_code == 201
        assert response.json()["totalPrice"] == 20.0
        assert response.json()["paymentMethod"] == "Credit Card"


class TestGetCheckout:
    def test_owner_can_read(self, client, catalogue):
        checkout_id = _open(client).json()["id"]
        response = client.get(f"/checkout/{checkout_id}", headers=USER)
        assert response.status_code == 200
        assert response.json()["id"] == checkout_id

    def test_other_user_is_forbidden(self, client, catalogue):
        checkout_id = _open(client).json()["id"]
        response = client.get(f"/checkout/{checkout_id}", headers=OTHER_USER)
        assert response.status_code == 403
        assert response.json()["kind"] == "Forbidden"

    def test_missing(self, client):
        response = client.get("/checkout/nope", headers=USER)
        assert response.status_code == 404
        assert response.json()["kind"] == "NotFound"


class TestPayAndFinalize:
    def test_full_flow(self, client, catalogue):
        client.post("/cart", json={"productId": "prod-hat", "quantity": 1}, headers=USER)
        checkout_id = _open(client).json()["id"]

        response = client.put(
            f"/checkout/{checkout_id}/pay",
            json={
                "paymentStatus": "Paid",
                "paymentDetails": {
                    "id": "PAY-123",
                    "status": "COMPLETED",
                    "purchase_units": [{"amount": {"value": "60.00", "currency_code": "USD"}}],
                },
            },
            headers=USER,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["isPaid"] is True
        assert body["paymentDetails"]["transactionId"] == "PAY-123"
        assert body["paymentDetails"]["amount"] == 60.0

        response = client.post(f"/checkout/{checkout_id}/finalize", headers=USER)
        assert response.status_code == 201
        result = response.json()
        assert result["status"] == "Processing"
        assert result["totalPrice"] == 60.0
        assert result["itemsCount"] == 2

        cart = client.get("/cart", headers=USER).json()
        assert cart["products"] == []

        response = client.post(f"/checkout/{checkout_id}/finalize", headers=USER)
        assert response.status_code == 409
        assert response.json()["kind"] == "AlreadyFinalized"

    def test_invalid_payment_status(self, client, catalogue):
        checkout_id = _open(client).json()["id"]
        response = client.put(f"/checkout/{checkout_id}/pay", json={"paymentStatus": "pending"}, headers=USER)
        assert response.status_code == 400
        assert response.json()["kind"] == "InvalidPaymentStatus"

    def test_finalize_unpaid(self, client, catalogue):
        checkout_id = _open(client).json()["id"]
        response = client.post(f"/checkout/{checkout_id}/finalize", headers=USER)
        assert response.status_code == 409
        assert response.json()["kind"] == "CheckoutNotPaid"

    def test_payment_failure(self, client, catalogue):
        checkout_id = _open(client).json()["id"]
        response = client.put(
            f"/checkout/{checkout_id}/payment-failure", json={"reason": "Card declined"}, headers=USER
        )
        assert response.status_code == 200
        assert response.json()["state"] == "failed"
        assert response.json()["failureReason"] == "Card declined"
