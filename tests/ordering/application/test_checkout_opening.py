"""Application tests for opening checkouts."""

import json

import pytest
from ordering.cart.items import AddToCart
from ordering.checkout.checkout import Checkout
from ordering.checkout.opening import OpenCheckout, OpenCheckoutFromCart
from ordering.errors import EmptyCheckout, InvalidCheckoutData, InvalidLineItem, UnknownProduct
from protean import current_domain


def _open(items, address, total_price, payment_method="Paypal", user_id="user-001"):
    return current_domain.process(
        OpenCheckout(
            user_id=user_id,
            items=json.dumps(items),
            shipping_address=json.dumps(address),
            payment_method=payment_method,
            total_price=total_price,
        ),
        asynchronous=False,
    )


def _checkouts():
    return current_domain.repository_for(Checkout)._dao.query.all().items


class TestOpenCheckout:
    def test_client_price_and_name_are_ignored(self, catalogue, address):
        checkout_id = _open(
            [{"product_id": "prod-shirt", "name": "Shirt", "unit_price": 1.0, "quantity": 2, "size": "M"}],
            address,
            50.0,
        )

        checkout = current_domain.repository_for(Checkout).get(checkout_id)
        assert checkout.total_price == 50.0
        assert checkout.items[0].unit_price == 25.0
        assert checkout.items[0].name == "Classic Shirt"
        assert checkout.items[0].size == "M"
        assert checkout.payment_status == "pending"

    def test_total_priced_from_client_prices_is_rejected(self, catalogue, address):
        with pytest.raises(InvalidCheckoutData):
            _open(
                [{"product_id": "prod-shirt", "unit_price": 1.0, "quantity": 2}],
                address,
                2.0,
            )
        assert _checkouts() == []

    def test_quantity_above_line_limit_is_rejected(self, catalogue, address):
        with pytest.raises(InvalidLineItem) as exc:
            _open([{"product_id": "prod-socks", "quantity": 1001}], address, 5505.5)

        assert exc.value.details["invalid_items"] == [{"index": 0, "invalid_fields": ["quantity"]}]
        assert _checkouts() == []

    def test_missing_details_fall_back_to_catalogue(self, catalogue, address):
        checkout_id = _open([{"product_id": "prod-shirt", "quantity": 1}], address, 25.0)

        item = current_domain.repository_for(Checkout).get(checkout_id).items[0]
        assert item.name == "Classic Shirt"
        assert item.unit_price == 25.0
        assert item.image == "https://cdn.example.com/shirt.jpg"

    def test_unknown_product_creates_nothing(self, catalogue, address):
        with pytest.raises(UnknownProduct) as exc:
            _open(
                [
                    {"product_id": "prod-shirt", "unit_price": 25.0, "quantity": 1},
                    {"product_id": "prod-ghost", "unit_price": 5.0, "quantity": 1},
                ],
                address,
                30.0,
            )

        assert exc.value.details["missing_product_ids"] == ["prod-ghost"]
        assert _checkouts() == []

    def test_duplicate_product_ids_count_once(self, catalogue, address):
        checkout_id = _open(
            [
                {"product_id": "prod-shirt", "unit_price": 25.0, "quantity": 1, "size": "M"},
                {"product_id": "prod-shirt", "unit_price": 25.0, "quantity": 1, "size": "L"},
            ],
            address,
            50.0,
        )
        assert len(current_domain.repository_for(Checkout).get(checkout_id).items) == 2

    def test_incomplete_address(self, catalogue, address):
        with pytest.raises(InvalidCheckoutData):
            _open([{"product_id": "prod-hat", "quantity": 1}], {**address, "country": ""}, 10.0)
        assert _checkouts() == []


class TestOpenCheckoutFromCart:
    def test_snapshot_of_cart(self, catalogue, address):
        current_domain.process(AddToCart(user_id="user-001", product_id="prod-hat", quantity=2), asynchronous=False)
        current_domain.process(AddToCart(user_id="user-001", product_id="prod-socks", quantity=1), asynchronous=False)

        checkout_id = current_domain.process(
            OpenCheckoutFromCart(user_id="user-001", shipping_address=json.dumps(address), payment_method="Paypal"),
            asynchronous=False,
        )
        checkout = current_domain.repository_for(Checkout).get(checkout_id)
        assert checkout.total_price == 25.5
        assert {item.product_id for item in checkout.items} == {"prod-hat", "prod-socks"}

        # Later cart edits do not reach the checkout
        current_domain.process(AddToCart(user_id="user-001", product_id="prod-hat", quantity=5), asynchronous=False)
        checkout = current_domain.repository_for(Checkout).get(checkout_id)
        assert checkout.total_price == 25.5

    def test_empty_cart(self, catalogue, address):
        with pytest.raises(EmptyCheckout):
            current_domain.process(
                OpenCheckoutFromCart(user_id="user-001", shipping_address=json.dumps(address), payment_method="Paypal"),
                asynchronous=False,
            )
