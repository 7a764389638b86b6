"""Checkout finalization — turns a paid checkout into an order.

Runs as one unit of work: the order is stored, the checkout is marked
finalized and the owner's cart is deleted together, or not at all. Any
failure before the writes leaves every record untouched.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.catalogue.product import find_products
from ordering.checkout.access import checkout_for_caller
from ordering.checkout.checkout import Checkout
from ordering.domain import ordering
from ordering.errors import AlreadyFinalized
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


def order_lines(checkout):
    """Checkout lines as order item dicts, with images resolved.

    The catalogue's first image wins; otherwise the snapshot image is kept;
    otherwise the image is "".
    """
    products = {str(p.product_id): p for p in find_products(item.product_id for item in checkout.items)}

    lines = []
    for item in checkout.items:
        product = products.get(str(item.product_id))
        image = (product.first_image if product else "") or item.image or ""
        lines.append(
            {
                "product_id": str(item.product_id),
                "name": item.name or (product.name if product else ""),
                "image": str(image),
                "unit_price": item.unit_price,
                "quantity": item.quantity,
                "size": item.size,
                "color": item.color,
            }
        )
    return lines


@ordering.command(part_of="Checkout")
class FinalizeCheckout:
    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)


@ordering.command_handler(part_of=Checkout)
class FinalizeCheckoutHandler:
    @handle(FinalizeCheckout)
    def finalize(self, command):
        checkout = checkout_for_caller(command.checkout_id, command.user_id)
        checkout.check_finalizable()

        order_repo = current_domain.repository_for(Order)
        if order_repo.for_checkout(checkout.id) is not None:
            raise AlreadyFinalized("Checkout has already been finalized", {"checkout_id": str(checkout.id)})

        lines = order_lines(checkout)
        order = Order.place_from_checkout(checkout, lines)
        checkout.finalize(order.id)

        order_repo.add(order)
        current_domain.repository_for(Checkout).add(checkout)
        cart_deleted = current_domain.repository_for(Cart).remove_for_user(checkout.user_id)

        logger.info(
            "Checkout finalized",
            checkout_id=str(checkout.id),
            order_id=str(order.id),
            total_price=order.total_price,
            items_count=len(lines),
            cart_deleted=cart_deleted,
        )
        return {
            "order_id": str(order.id),
            "status": order.status,
            "total_price": order.total_price,
            "items_count": len(lines),
        }
