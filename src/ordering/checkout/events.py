"""Domain events for the Checkout aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Checkout")
class CheckoutOpened:
    """A checkout record was created from a cart snapshot."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)
    item_count = Integer(required=True)
    total_price = Float(required=True)
    payment_method = String(required=True)


@ordering.event(part_of="Checkout")
class CheckoutPaid:
    """Payment for a checkout was confirmed."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)
    transaction_id = String()
    gateway = String()
    amount = Float()
    currency = String()
    paid_at = DateTime(required=True)


@ordering.event(part_of="Checkout")
class CheckoutPaymentFailed:
    """The gateway reported a failed payment for a checkout."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = String()


@ordering.event(part_of="Checkout")
class CheckoutRefunded:
    """A paid, unfinalized checkout was refunded."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)
    refunded_at = DateTime(required=True)


@ordering.event(part_of="Checkout")
class CheckoutFinalized:
    """A paid checkout was converted into an order."""

    __version__ = 1

    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    finalized_at = DateTime(required=True)
