"""Checkout aggregate — a snapshot of the cart taken when payment starts.

The checkout tracks payment independently of the cart it was taken from, so
later cart edits never change what is being paid for.

State Machine:
    CREATED → PAID → FINALIZED
    CREATED → FAILED
    PAID → REFUNDED
    FINALIZED is terminal: no field changes once an order exists.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from ordering.checkout.events import (
    CheckoutFinalized,
    CheckoutOpened,
    CheckoutPaid,
    CheckoutPaymentFailed,
    CheckoutRefunded,
)
from ordering.domain import ordering
from ordering.errors import (
    AlreadyFinalized,
    CheckoutNotPaid,
    EmptyCheckout,
    InvalidCheckoutData,
    InvalidLineItem,
    InvalidPaymentStatus,
    InvalidStateTransition,
)
from ordering.shared.limits import MAX_LINE_QUANTITY
from ordering.shared.value_objects import PaymentDetails, ShippingAddress

ADDRESS_FIELDS = ("address", "city", "postal_code", "country")


class PaymentMethod(Enum):
    PAYPAL = "Paypal"
    CREDIT_CARD = "Credit Card"
    BANK_TRANSFER = "Bank Transfer"

    @classmethod
    def parse(cls, value):
        """Match case- and space-insensitively, so "CreditCard" is "Credit Card"."""
        key = "".join(str(value or "").split()).lower()
        for method in cls:
            if "".join(method.value.split()).lower() == key:
                return method
        raise InvalidCheckoutData(
            f"{value!r} is not a supported payment method",
            {"payment_method": value, "allowed": [m.value for m in cls]},
        )


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class CheckoutState(Enum):
    CREATED = "created"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    FINALIZED = "finalized"


def check_line_items(items):
    """Reject lines without a product id or a quantity between 1 and MAX_LINE_QUANTITY."""
    if not items:
        raise EmptyCheckout("Please provide at least one item in the checkout")

    invalid_items = []
    for index, item in enumerate(items):
        quantity = item.get("quantity")
        missing = []
        if not item.get("product_id"):
            missing.append("product_id")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or not 1 <= quantity <= MAX_LINE_QUANTITY:
            missing.append("quantity")
        if missing:
            invalid_items.append({"index": index, "invalid_fields": missing})

    if invalid_items:
        raise InvalidLineItem(
            f"Each item must have a productId and a quantity between 1 and {MAX_LINE_QUANTITY}",
            {"invalid_items": invalid_items},
        )


@ordering.entity(part_of="Checkout")
class CheckoutItem:
    # Not required at field level: legacy records can carry incomplete lines,
    # which finalization reports instead of failing to load.
    product_id = Identifier()
    name = String(max_length=255, default="")
    image = String(max_length=1024, default="")
    unit_price = Float(min_value=0.0)
    quantity = Integer(min_value=1, max_value=MAX_LINE_QUANTITY)
    size = String(max_length=50)
    color = String(max_length=50)

    def missing_fields(self):
        missing = []
        if not self.product_id:
            missing.append("product_id")
        if self.unit_price is None:
            missing.append("price")
        if not self.quantity:
            missing.append("quantity")
        return missing


@ordering.aggregate
class Checkout:
    user_id = Identifier(required=True)
    items = HasMany(CheckoutItem)
    shipping_address = ValueObject(ShippingAddress)
    payment_method = String(choices=PaymentMethod, required=True)
    total_price = Float(required=True, min_value=0.0)
    is_paid = Boolean(default=False)
    paid_at = DateTime()
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_details = ValueObject(PaymentDetails)
    failure_reason = String(max_length=500)
    refunded_at = DateTime()
    is_finalized = Boolean(default=False)
    finalized_at = DateTime()
    order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def paid_checkout_must_record_when_it_was_paid(self):
        if self.is_paid and (self.paid_at is None or self.payment_status != PaymentStatus.PAID.value):
            raise ValidationError({"is_paid": ["A paid checkout needs paidAt and paymentStatus 'paid'"]})

    @invariant.post
    def finalized_checkout_must_record_when_it_was_finalized(self):
        if self.is_finalized and self.finalized_at is None:
            raise ValidationError({"is_finalized": ["A finalized checkout needs finalizedAt"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, user_id, items, shipping_address, payment_method, total_price):
        """Create a checkout in CREATED state from validated snapshot lines.

        Args:
            user_id: The owner of the checkout. Never changes afterwards.
            items: List of dicts with product_id, name, image, unit_price,
                   quantity and optional size/color.
            shipping_address: Dict with address, city, postal_code, country.
            payment_method: One of the PaymentMethod values (loosely spelled).
            total_price: Amount to be paid; must equal the sum of the lines.
        """
        if not user_id:
            raise InvalidCheckoutData("A checkout must belong to a user")

        check_line_items(items)

        missing_prices = [index for index, item in enumerate(items) if item.get("unit_price") is None]
        if missing_prices:
            raise InvalidLineItem(
                "Some items have no price",
                {"invalid_items": [{"index": i, "invalid_fields": ["price"]} for i in missing_prices]},
            )

        address = shipping_address or {}
        missing_address = [f for f in ADDRESS_FIELDS if not str(address.get(f) or "").strip()]
        if missing_address:
            raise InvalidCheckoutData(
                "Complete shipping address is required",
                {"missing_fields": missing_address},
            )

        method = PaymentMethod.parse(payment_method)

        if isinstance(total_price, bool) or not isinstance(total_price, int | float) or total_price <= 0:
            raise InvalidCheckoutData("Valid total price is required", {"total_price": total_price})

        items_total = sum(item["unit_price"] * item["quantity"] for item in items)
        if abs(items_total - total_price) > 0.005:
            raise InvalidCheckoutData(
                "Total price does not match sum of items",
                {"total_price": total_price, "items_total": items_total},
            )

        now = datetime.now(UTC)
        checkout = cls(
            user_id=user_id,
            items=[
                CheckoutItem(
                    product_id=item["product_id"],
                    name=item.get("name") or "",
                    image=item.get("image") or "",
                    unit_price=item["unit_price"],
                    quantity=item["quantity"],
                    size=item.get("size") or None,
                    color=item.get("color") or None,
                )
                for item in items
            ],
            shipping_address=ShippingAddress(**{f: str(address[f]).strip() for f in ADDRESS_FIELDS}),
            payment_method=method.value,
            total_price=float(total_price),
            is_paid=False,
            payment_status=PaymentStatus.PENDING.value,
            is_finalized=False,
            created_at=now,
            updated_at=now,
        )

        checkout.raise_(
            CheckoutOpened(
                checkout_id=str(checkout.id),
                user_id=str(user_id),
                item_count=len(items),
                total_price=float(total_price),
                payment_method=method.value,
            )
        )
        return checkout

    # -------------------------------------------------------------------
    # State helpers
    # -------------------------------------------------------------------
    @property
    def state(self) -> CheckoutState:
        if self.is_finalized:
            return CheckoutState.FINALIZED
        return CheckoutState(
            {
                PaymentStatus.PENDING.value: CheckoutState.CREATED.value,
                PaymentStatus.PAID.value: CheckoutState.PAID.value,
                PaymentStatus.FAILED.value: CheckoutState.FAILED.value,
                PaymentStatus.REFUNDED.value: CheckoutState.REFUNDED.value,
            }[self.payment_status]
        )

    def assert_not_finalized(self):
        if self.is_finalized:
            raise AlreadyFinalized("Checkout has already been finalized", {"checkout_id": str(self.id)})

    def _assert_state(self, expected, action):
        if self.state != expected:
            raise InvalidStateTransition(
                f"Cannot {action} a checkout in {self.state.value} state",
                {"checkout_id": str(self.id), "state": self.state.value},
            )

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def check_payment_confirmation(self, payment_status_token, details: PaymentDetails | None):
        """Raise unless ``confirm_payment`` would succeed. Changes nothing."""
        self.assert_not_finalized()
        self._assert_state(CheckoutState.CREATED, "confirm payment for")

        token_says_paid = str(payment_status_token or "").strip().lower() == PaymentStatus.PAID.value
        gateway_says_completed = details is not None and (details.status or "").upper() == "COMPLETED"
        if not (token_says_paid or gateway_says_completed):
            raise InvalidPaymentStatus(
                "Invalid payment status",
                {"payment_status": payment_status_token, "expected": "paid"},
            )

    def confirm_payment(self, payment_status_token, details: PaymentDetails | None = None):
        self.check_payment_confirmation(payment_status_token, details)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_paid = True
            self.payment_status = PaymentStatus.PAID.value
            self.paid_at = now
            self.payment_details = details
            self.updated_at = now

        self.raise_(
            CheckoutPaid(
                checkout_id=str(self.id),
                user_id=str(self.user_id),
                transaction_id=details.transaction_id if details else None,
                gateway=details.gateway if details else None,
                amount=details.amount if details else None,
                currency=details.currency if details else None,
                paid_at=now,
            )
        )

    def record_payment_failure(self, reason, details: PaymentDetails | None = None):
        self.assert_not_finalized()
        self._assert_state(CheckoutState.CREATED, "record a payment failure for")

        with atomic_change(self):
            self.payment_status = PaymentStatus.FAILED.value
            self.failure_reason = reason
            if details is not None:
                self.payment_details = details
            self.updated_at = datetime.now(UTC)

        self.raise_(
            CheckoutPaymentFailed(
                checkout_id=str(self.id),
                user_id=str(self.user_id),
                reason=reason,
            )
        )

    def refund(self):
        self.assert_not_finalized()
        self._assert_state(CheckoutState.PAID, "refund")

        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_paid = False
            self.payment_status = PaymentStatus.REFUNDED.value
            self.refunded_at = now
            self.updated_at = now

        self.raise_(
            CheckoutRefunded(
                checkout_id=str(self.id),
                user_id=str(self.user_id),
                refunded_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Finalization
    # -------------------------------------------------------------------
    def check_finalizable(self):
        """Raise unless the checkout can become an order. Changes nothing."""
        self.assert_not_finalized()

        if not self.items:
            raise EmptyCheckout("No valid items found in checkout", {"checkout_id": str(self.id)})

        invalid_items = [
            {"index": index, "product_id": item.product_id, "missing_fields": item.missing_fields()}
            for index, item in enumerate(self.items)
            if item.missing_fields()
        ]
        if invalid_items:
            raise InvalidLineItem(
                "Some items are missing required fields",
                {"invalid_items": invalid_items},
            )

        if self.state != CheckoutState.PAID:
            raise CheckoutNotPaid(
                "Checkout must be paid before it can be finalized",
                {"checkout_id": str(self.id), "state": self.state.value},
            )

    def finalize(self, order_id):
        self.check_finalizable()

        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_finalized = True
            self.finalized_at = now
            self.order_id = order_id
            self.updated_at = now

        self.raise_(
            CheckoutFinalized(
                checkout_id=str(self.id),
                user_id=str(self.user_id),
                order_id=str(order_id),
                finalized_at=now,
            )
        )
