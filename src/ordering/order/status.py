"""Administrative order management — status changes and removal."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import NotFound
from ordering.order.order import Order
from ordering.order.repository import OrderRepository

logger = structlog.get_logger(__name__)


def load_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError as exc:
        raise NotFound("Order not found", {"order_id": str(order_id)}) from exc


@ordering.command(part_of="Order")
class SetOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)


@ordering.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class OrderAdministrationHandler:
    @handle(SetOrderStatus)
    def set_status(self, command):
        order = load_order(command.order_id)
        previous_status = order.status

        order.set_status(command.status)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            previous_status=previous_status,
            new_status=order.status,
        )
        return str(order.id)

    @handle(DeleteOrder)
    def delete(self, command):
        """Remove an order outright. The checkout it came from stays finalized."""
        order = load_order(command.order_id)
        repo: OrderRepository = current_domain.repository_for(Order)
        repo.remove(order)

        logger.info("Order removed", order_id=str(order.id), checkout_id=str(order.checkout_id))
        return str(order.id)
