"""Order aggregate — created once from a paid checkout.

After placement an order is only changed by administrative status
transitions. Its lines and total are copied from the checkout and never
edited.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from ordering.domain import ordering
from ordering.errors import InvalidOrderStatus
from ordering.order.events import OrderPlaced, OrderStatusChanged
from ordering.shared.limits import MAX_LINE_QUANTITY
from ordering.shared.value_objects import PaymentDetails, ShippingAddress


class OrderStatus(Enum):
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    RETURNED = "Returned"

    @classmethod
    def parse(cls, value):
        key = str(value or "").strip().lower()
        for status in cls:
            if status.value.lower() == key:
                return status
        raise InvalidOrderStatus(
            f"{value!r} is not a valid order status",
            {"status": value, "allowed": [s.value for s in cls]},
        )


@ordering.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    name = String(max_length=255, default="")
    image = String(max_length=1024, default="")
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1, max_value=MAX_LINE_QUANTITY)
    size = String(max_length=50)
    color = String(max_length=50)


@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    checkout_id = Identifier(required=True, unique=True)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    payment_method = String(max_length=50)
    payment_details = ValueObject(PaymentDetails)
    total_price = Float(required=True, min_value=0.0)
    is_paid = Boolean(default=False)
    paid_at = DateTime()
    payment_status = String(max_length=20, default="pending")
    is_delivered = Boolean(default=False)
    delivered_at = DateTime()
    status = String(choices=OrderStatus, default=OrderStatus.PROCESSING.value)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_equal_sum_of_items(self):
        items_total = sum(item.unit_price * item.quantity for item in self.items)
        if abs(items_total - (self.total_price or 0.0)) > 0.005:
            raise ValidationError({"total_price": ["Order total must equal the sum of its items"]})

    @invariant.post
    def paid_order_must_record_when_it_was_paid(self):
        if self.is_paid and self.paid_at is None:
            raise ValidationError({"paid_at": ["A paid order needs paidAt"]})

    @invariant.post
    def delivered_order_must_record_when_it_was_delivered(self):
        if self.is_delivered and self.delivered_at is None:
            raise ValidationError({"delivered_at": ["A delivered order needs deliveredAt"]})

    @classmethod
    def place_from_checkout(cls, checkout, items):
        """Build an order from a finalizable checkout.

        ``items`` are the checkout lines with their images already resolved
        (dicts with product_id, name, image, unit_price, quantity, size, color).
        """
        now = datetime.now(UTC)
        order = cls(
            user_id=checkout.user_id,
            checkout_id=checkout.id,
            items=[OrderItem(**item) for item in items],
            shipping_address=checkout.shipping_address,
            payment_method=checkout.payment_method,
            payment_details=checkout.payment_details,
            total_price=checkout.total_price,
            is_paid=checkout.is_paid,
            paid_at=checkout.paid_at,
            payment_status=checkout.payment_status,
            status=OrderStatus.PROCESSING.value,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(order.user_id),
                checkout_id=str(checkout.id),
                item_count=len(items),
                total_price=order.total_price,
                placed_at=now,
            )
        )
        return order

    def set_status(self, new_status):
        """Move the order to ``new_status``; Delivered also stamps the delivery."""
        status = OrderStatus.parse(new_status)
        previous_status = self.status

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = status.value
            if status == OrderStatus.DELIVERED and not self.is_delivered:
                self.is_delivered = True
                self.delivered_at = now
            self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                user_id=str(self.user_id),
                previous_status=previous_status,
                new_status=status.value,
                changed_at=now,
            )
        )
