"""Opening checkouts — commands and handler.

A checkout is a snapshot: lines are copied when it is opened, and later
edits to the cart they came from never reach it.
"""

import json

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.catalogue.product import find_products
from ordering.checkout.checkout import Checkout, check_line_items
from ordering.domain import ordering
from ordering.errors import EmptyCheckout, UnknownProduct

logger = structlog.get_logger(__name__)


def _loads(value):
    return json.loads(value) if isinstance(value, str) else value


def snapshot_lines(items):
    """Validate requested lines against the catalogue and price them from it.

    Every distinct product id must exist. Unit price and name always come from
    the catalogue, whatever the client sent; the client image is kept only for
    products the catalogue has no image for.
    """
    check_line_items(items)

    requested_ids = {str(item["product_id"]) for item in items}
    products = {str(product.product_id): product for product in find_products(requested_ids)}
    if len(products) != len(requested_ids):
        raise UnknownProduct(
            "Some products were not found",
            {"missing_product_ids": sorted(requested_ids - set(products))},
        )

    lines = []
    for item in items:
        product = products[str(item["product_id"])]
        lines.append(
            {
                "product_id": str(item["product_id"]),
                "name": product.name,
                "image": product.first_image or item.get("image") or "",
                "unit_price": product.price,
                "quantity": item["quantity"],
                "size": item.get("size"),
                "color": item.get("color"),
            }
        )
    return lines


@ordering.command(part_of="Checkout")
class OpenCheckout:
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of line dicts
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(max_length=50)
    total_price = Float()


@ordering.command(part_of="Checkout")
class OpenCheckoutFromCart:
    """Snapshot the user's current cart, total included."""

    user_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(max_length=50)


@ordering.command_handler(part_of=Checkout)
class OpenCheckoutHandler:
    @handle(OpenCheckout)
    def open_checkout(self, command):
        lines = snapshot_lines(_loads(command.items) or [])
        return self._open(command, lines, command.total_price)

    @handle(OpenCheckoutFromCart)
    def open_checkout_from_cart(self, command):
        cart = current_domain.repository_for(Cart).for_user(command.user_id)
        if cart is None or not cart.items:
            raise EmptyCheckout("Your cart is empty", {"user_id": str(command.user_id)})

        lines = snapshot_lines([item.to_snapshot() for item in cart.items])
        return self._open(command, lines, cart.total_price)

    def _open(self, command, lines, total_price):
        checkout = Checkout.open(
            user_id=command.user_id,
            items=lines,
            shipping_address=_loads(command.shipping_address) or {},
            payment_method=command.payment_method,
            total_price=total_price,
        )
        current_domain.repository_for(Checkout).add(checkout)

        logger.info(
            "Checkout opened",
            checkout_id=str(checkout.id),
            user_id=str(command.user_id),
            item_count=len(lines),
            total_price=checkout.total_price,
        )
        return str(checkout.id)
