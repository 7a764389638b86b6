"""Repository for the Order aggregate."""

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def for_user(self, user_id) -> list[Order]:
        """The user's orders, newest first."""
        return self._dao.query.filter(user_id=str(user_id)).order_by("-created_at").all().items

    def for_checkout(self, checkout_id) -> Order | None:
        orders = self._dao.query.filter(checkout_id=str(checkout_id)).all().items
        return orders[0] if orders else None

    def newest_first(self) -> list[Order]:
        return self._dao.query.order_by("-created_at").all().items

    def remove(self, order: Order) -> None:
        self._dao.delete(order)
