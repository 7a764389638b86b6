"""Value objects shared by the Checkout and Order aggregates."""

import json

from protean.fields import Float, String, Text

from ordering.domain import ordering


@ordering.value_object
class ShippingAddress:
    """Where an order ships to, captured at checkout time.

    Once recorded on a checkout it is copied verbatim onto the order; later
    edits to a customer's address book never reach either record.
    """

    address = String(required=True, max_length=200)
    city = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)

    def to_dict(self):
        return {
            "address": self.address,
            "city": self.city,
            "postal_code": self.postal_code,
            "country": self.country,
        }


@ordering.value_object
class PaymentDetails:
    """Canonical payment result, independent of the gateway that produced it.

    ``raw_response`` keeps the payload exactly as the gateway relayed it (JSON)
    for audit. Nothing downstream reads it.
    """

    transaction_id = String(max_length=255)
    gateway = String(max_length=100)
    amount = Float()
    currency = String(max_length=10)
    status = String(max_length=50)
    raw_response = Text()

    def to_dict(self):
        return {
            "transaction_id": self.transaction_id,
            "gateway": self.gateway,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
            "raw_response": json.loads(self.raw_response) if self.raw_response else None,
        }
