import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases and drain the event store
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def verifier():
    """A fresh FakeVerifier for every test."""
    from ordering.gateway import reset_verifier, set_verifier
    from ordering.gateway.fake_adapter import FakeVerifier

    fake = FakeVerifier()
    set_verifier(fake)
    yield fake
    reset_verifier()



@pytest.fixture()
def catalogue():
    """Seed the catalogue read model with a few products."""
    from ordering.catalogue.product import upsert_product

    return {
        "shirt": upsert_product(
            "prod-shirt",
            "Classic Shirt",
            25.0,
            [{"url": "https://cdn.example.com/shirt.jpg", "altText": "Classic Shirt"}],
        ),
        "hat": upsert_product("prod-hat", "Wool Hat", 10.0, ["https://cdn.example.com/hat.jpg"]),
        "socks": upsert_product("prod-socks", "Socks", 5.5, []),
    }


@pytest.fixture()
def address():
    return {
        "address": "1 Main St",
        "city": "Springfield",
        "postal_code": "62701",
        "country": "US",
    }


@pytest.fixture()
def open_checkout(catalogue, address):
    """Factory: open a checkout for shirt x2 (size M) and hat x1, total 60.0."""
    import json

    from ordering.checkout.opening import OpenCheckout
    from protean import current_domain

    def _open(user_id="user-001", items=None, total_price=60.0):
        items = items or [
            {"product_id": "prod-shirt", "quantity": 2, "size": "M"},
            {"product_id": "prod-hat", "quantity": 1},
        ]
        return current_domain.process(
            OpenCheckout(
                user_id=user_id,
                items=json.dumps(items),
                shipping_address=json.dumps(address),
                payment_method="Paypal",
                total_price=total_price,
            ),
            asynchronous=False,
        )

    return _open


@pytest.fixture()
def paid_checkout(open_checkout):
    """Factory: open a checkout and confirm its payment."""
    from ordering.checkout.payment import ConfirmPayment
    from protean import current_domain

    def _paid(user_id="user-001"):
        checkout_id = open_checkout(user_id=user_id)
        current_domain.process(
            ConfirmPayment(checkout_id=checkout_id, user_id=user_id, payment_status="paid"),
            asynchronous=False,
        )
        return checkout_id

    return _paid
