"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands. JSON keys are camelCase; snake_case is accepted
on input as well.
"""

import json
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(ApiModel):
    address: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = ""


class PaymentDetailsSchema(ApiModel):
    transaction_id: str | None = None
    gateway: str | None = None
    amount: float | None = None
    currency: str | None = None
    status: str | None = None
    raw_response: Any = None

    @classmethod
    def from_value_object(cls, details):
        if details is None:
            return None
        return cls(**details.to_dict())


class LineItemSchema(ApiModel):
    # Optional: imported legacy checkouts can hold incomplete lines
    product_id: str | None = None
    name: str = ""
    image: str = ""
    price: float | None = None
    quantity: int | None = None
    size: str | None = None
    color: str | None = None

    @classmethod
    def from_entity(cls, item):
        return cls(
            product_id=str(item.product_id) if item.product_id else None,
            name=item.name or "",
            image=item.image or "",
            price=item.unit_price,
            quantity=item.quantity,
            size=item.size,
            color=item.color,
        )


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(ApiModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)
    size: str | None = None
    color: str | None = None
    guest_id: str | None = None


class UpdateCartItemRequest(ApiModel):
    product_id: str
    quantity: int
    size: str | None = None
    color: str | None = None
    guest_id: str | None = None


class RemoveCartItemRequest(ApiModel):
    product_id: str
    size: str | None = None
    color: str | None = None
    guest_id: str | None = None


class GuestCartRequest(ApiModel):
    guest_id: str | None = None


class MergeCartRequest(ApiModel):
    guest_id: str


class CartResponse(ApiModel):
    id: str
    user_id: str | None = None
    guest_id: str | None = None
    products: list[LineItemSchema]
    total_price: float

    @classmethod
    def from_cart(cls, cart):
        return cls(
            id=str(cart.id),
            user_id=str(cart.user_id) if cart.user_id else None,
            guest_id=cart.guest_id,
            products=[LineItemSchema.from_entity(item) for item in cart.items],
            total_price=cart.total_price,
        )


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutItemRequest(ApiModel):
    # Left loose so that missing fields surface as InvalidLineItem
    product_id: str | None = None
    name: str | None = None
    image: str | None = None
    price: float | None = None
    quantity: int | None = None
    size: str | None = None
    color: str | None = None

    def to_line(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "image": self.image,
            "unit_price": self.price,
            "quantity": self.quantity,
            "size": self.size,
            "color": self.color,
        }


class CreateCheckoutRequest(ApiModel):
    checkout_items: list[CheckoutItemRequest] = Field(
        default_factory=list,
        validation_alias=AliasChoices("checkoutItems", "checkout_items", "items"),
    )
    shipping_address: ShippingAddressSchema = Field(default_factory=ShippingAddressSchema)
    payment_method: str | None = None
    total_price: float | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "checkoutItems": [{"productId": "prod-001", "price": 25.0, "quantity": 2, "size": "M"}],
                    "shippingAddress": {
                        "address": "1 Main St",
                        "city": "Springfield",
                        "postalCode": "12345",
                        "country": "US",
                    },
                    "paymentMethod": "Paypal",
                    "totalPrice": 50.0,
                }
            ]
        }
    )


class CheckoutFromCartRequest(ApiModel):
    shipping_address: ShippingAddressSchema = Field(default_factory=ShippingAddressSchema)
    payment_method: str | None = None


class PayCheckoutRequest(ApiModel):
    payment_status: str | None = None
    payment_details: dict[str, Any] | None = None


class PaymentFailureRequest(ApiModel):
    reason: str | None = None
    payment_details: dict[str, Any] | None = None


class CheckoutResponse(ApiModel):
    id: str
    user_id: str
    checkout_items: list[LineItemSchema]
    shipping_address: ShippingAddressSchema | None = None
    payment_method: str
    total_price: float
    is_paid: bool
    paid_at: datetime | None = None
    payment_status: str
    payment_details: PaymentDetailsSchema | None = None
    failure_reason: str | None = None
    is_finalized: bool
    finalized_at: datetime | None = None
    state: str
    created_at: datetime | None = None

    @classmethod
    def from_checkout(cls, checkout):
        return cls(
            id=str(checkout.id),
            user_id=str(checkout.user_id),
            checkout_items=[LineItemSchema.from_entity(item) for item in checkout.items],
            shipping_address=(
                ShippingAddressSchema(**checkout.shipping_address.to_dict()) if checkout.shipping_address else None
            ),
            payment_method=checkout.payment_method,
            total_price=checkout.total_price,
            is_paid=bool(checkout.is_paid),
            paid_at=checkout.paid_at,
            payment_status=checkout.payment_status,
            payment_details=PaymentDetailsSchema.from_value_object(checkout.payment_details),
            failure_reason=checkout.failure_reason,
            is_finalized=bool(checkout.is_finalized),
            finalized_at=checkout.finalized_at,
            state=checkout.state.value,
            created_at=checkout.created_at,
        )


class FinalizeResponse(ApiModel):
    order_id: str
    status: str
    total_price: float
    items_count: int


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderStatusRequest(ApiModel):
    status: str


class OrderResponse(ApiModel):
    id: str
    user_id: str
    checkout_id: str
    order_items: list[LineItemSchema]
    shipping_address: ShippingAddressSchema | None = None
    payment_method: str | None = None
    payment_details: PaymentDetailsSchema | None = None
    total_price: float
    is_paid: bool
    paid_at: datetime | None = None
    payment_status: str | None = None
    is_delivered: bool
    delivered_at: datetime | None = None
    status: str
    created_at: datetime | None = None

    @classmethod
    def from_order(cls, order):
        return cls(
            id=str(order.id),
            user_id=str(order.user_id),
            checkout_id=str(order.checkout_id),
            order_items=[LineItemSchema.from_entity(item) for item in order.items],
            shipping_address=(
                ShippingAddressSchema(**order.shipping_address.to_dict()) if order.shipping_address else None
            ),
            payment_method=order.payment_method,
            payment_details=PaymentDetailsSchema.from_value_object(order.payment_details),
            total_price=order.total_price,
            is_paid=bool(order.is_paid),
            paid_at=order.paid_at,
            payment_status=order.payment_status,
            is_delivered=bool(order.is_delivered),
            delivered_at=order.delivered_at,
            status=order.status,
            created_at=order.created_at,
        )


def dump_json(value) -> str:
    return json.dumps(value if value is not None else {})
