"""FastAPI routes for the Ordering domain — cart, checkout, orders and admin."""

import json
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from ordering.api.auth import Caller, optional_caller, require_admin, require_user
from ordering.api.schemas import (
    AddToCartRequest,
    CartResponse,
    CheckoutFromCartRequest,
    CheckoutResponse,
    CreateCheckoutRequest,
    FinalizeResponse,
    GuestCartRequest,
    MergeCartRequest,
    OrderResponse,
    OrderStatusRequest,
    PayCheckoutRequest,
    PaymentFailureRequest,
    RemoveCartItemRequest,
    UpdateCartItemRequest,
    dump_json,
)
from ordering.cart.cart import Cart
from ordering.cart.items import AddToCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.management import ClearCart, MergeGuestCart, ResolveCart
from ordering.checkout.access import checkout_for_caller, load_checkout
from ordering.checkout.finalization import FinalizeCheckout
from ordering.checkout.opening import OpenCheckout, OpenCheckoutFromCart
from ordering.checkout.payment import ConfirmPayment, RecordPaymentFailure, RefundCheckout
from ordering.errors import Forbidden
from ordering.order.order import Order
from ordering.order.status import DeleteOrder, SetOrderStatus, load_order

CurrentCaller = Annotated[Caller | None, Depends(optional_caller)]
SignedInCaller = Annotated[Caller, Depends(require_user)]
AdminCaller = Annotated[Caller, Depends(require_admin)]


def _owner(caller: Caller | None, guest_id: str | None) -> dict:
    """A signed-in caller always owns the cart; otherwise the guest id does."""
    if caller is not None:
        return {"user_id": caller.user_id, "guest_id": None}
    return {"user_id": None, "guest_id": guest_id}


def _cart_response(cart_id: str) -> CartResponse:
    return CartResponse.from_cart(current_domain.repository_for(Cart).get(cart_id))


def _checkout_response(checkout_id: str) -> CheckoutResponse:
    return CheckoutResponse.from_checkout(load_checkout(checkout_id))


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(
    caller: CurrentCaller,
    guest_id: Annotated[str | None, Query(alias="guestId")] = None,
) -> CartResponse:
    cart_id = current_domain.process(ResolveCart(**_owner(caller, guest_id)), asynchronous=False)
    return _cart_response(cart_id)


@cart_router.post("", response_model=CartResponse)
async def add_to_cart(body: AddToCartRequest, caller: CurrentCaller) -> CartResponse:
    command = AddToCart(
        **_owner(caller, body.guest_id),
        product_id=body.product_id,
        quantity=body.quantity,
        size=body.size,
        color=body.color,
    )
    cart_id = current_domain.process(command, asynchronous=False)
    return _cart_response(cart_id)


@cart_router.put("", response_model=CartResponse)
async def update_cart_item(body: UpdateCartItemRequest, caller: CurrentCaller) -> CartResponse:
    command = UpdateCartQuantity(
        **_owner(caller, body.guest_id),
        product_id=body.product_id,
        quantity=body.quantity,
        size=body.size,
        color=body.color,
    )
    cart_id = current_domain.process(command, asynchronous=False)
    return _cart_response(cart_id)


@cart_router.delete("", response_model=CartResponse)
async def remove_cart_item(body: RemoveCartItemRequest, caller: CurrentCaller) -> CartResponse:
    command = RemoveFromCart(
        **_owner(caller, body.guest_id),
        product_id=body.product_id,
        size=body.size,
        color=body.color,
    )
    cart_id = current_domain.process(command, asynchronous=False)
    return _cart_response(cart_id)


@cart_router.post("/clear", response_model=CartResponse)
async def clear_cart(body: GuestCartRequest, caller: CurrentCaller) -> CartResponse:
    cart_id = current_domain.process(ClearCart(**_owner(caller, body.guest_id)), asynchronous=False)
    return _cart_response(cart_id)


@cart_router.post("/merge", response_model=CartResponse)
async def merge_guest_cart(body: MergeCartRequest, caller: SignedInCaller) -> CartResponse:
    command = MergeGuestCart(user_id=caller.user_id, guest_id=body.guest_id)
    cart_id = current_domain.process(command, asynchronous=False)
    return _cart_response(cart_id)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def open_checkout(body: CreateCheckoutRequest, caller: SignedInCaller) -> CheckoutResponse:
    command = OpenCheckout(
        user_id=caller.user_id,
        items=json.dumps([item.to_line() for item in body.checkout_items]),
        shipping_address=dump_json(body.shipping_address.model_dump()),
        payment_method=body.payment_method,
        total_price=body.total_price,
    )
    checkout_id = current_domain.process(command, asynchronous=False)
    return _checkout_response(checkout_id)


@checkout_router.post("/from-cart", status_code=201, response_model=CheckoutResponse)
async def open_checkout_from_cart(body: CheckoutFromCartRequest, caller: SignedInCaller) -> CheckoutResponse:
    command = OpenCheckoutFromCart(
        user_id=caller.user_id,
        shipping_address=dump_json(body.shipping_address.model_dump()),
        payment_method=body.payment_method,
    )
    checkout_id = current_domain.process(command, asynchronous=False)
    return _checkout_response(checkout_id)


@checkout_router.get("/{checkout_id}", response_model=CheckoutResponse)
async def get_checkout(checkout_id: str, caller: SignedInCaller) -> CheckoutResponse:
    return CheckoutResponse.from_checkout(checkout_for_caller(checkout_id, caller.user_id))


@checkout_router.put("/{checkout_id}/pay", response_model=CheckoutResponse)
async def pay_checkout(checkout_id: str, body: PayCheckoutRequest, caller: SignedInCaller) -> CheckoutResponse:
    command = ConfirmPayment(
        checkout_id=checkout_id,
        user_id=caller.user_id,
        payment_status=body.payment_status,
        payment_details=json.dumps(body.payment_details) if body.payment_details else None,
    )
    current_domain.process(command, asynchronous=False)
    return _checkout_response(checkout_id)


@checkout_router.put("/{checkout_id}/payment-failure", response_model=CheckoutResponse)
async def record_payment_failure(
    checkout_id: str, body: PaymentFailureRequest, caller: SignedInCaller
) -> CheckoutResponse:
    command = RecordPaymentFailure(
        checkout_id=checkout_id,
        user_id=caller.user_id,
        reason=body.reason,
        payment_details=json.dumps(body.payment_details) if body.payment_details else None,
    )
    current_domain.process(command, asynchronous=False)
    return _checkout_response(checkout_id)


@checkout_router.post("/{checkout_id}/finalize", status_code=201, response_model=FinalizeResponse)
async def finalize_checkout(checkout_id: str, caller: SignedInCaller) -> FinalizeResponse:
    result = current_domain.process(
        FinalizeCheckout(checkout_id=checkout_id, user_id=caller.user_id),
        asynchronous=False,
    )
    return FinalizeResponse(**result)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/my-orders", response_model=list[OrderResponse])
async def my_orders(caller: SignedInCaller) -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).for_user(caller.user_id)
    return [OrderResponse.from_order(order) for order in orders]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, caller: SignedInCaller) -> OrderResponse:
    order = load_order(order_id)
    if str(order.user_id) != caller.user_id and not caller.is_admin:
        raise Forbidden("Not authorized to view this order", {"order_id": order_id})
    return OrderResponse.from_order(order)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.get("/orders", response_model=list[OrderResponse])
async def all_orders(caller: AdminCaller) -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).newest_first()
    return [OrderResponse.from_order(order) for order in orders]


@admin_router.put("/orders/{order_id}", response_model=OrderResponse)
async def set_order_status(order_id: str, body: OrderStatusRequest, caller: AdminCaller) -> OrderResponse:
    current_domain.process(SetOrderStatus(order_id=order_id, status=body.status), asynchronous=False)
    return OrderResponse.from_order(load_order(order_id))


@admin_router.delete("/orders/{order_id}")
async def delete_order(order_id: str, caller: AdminCaller) -> dict:
    current_domain.process(DeleteOrder(order_id=order_id), asynchronous=False)
    return {"message": "Order removed"}


@admin_router.post("/checkouts/{checkout_id}/refund", response_model=CheckoutResponse)
async def refund_checkout(checkout_id: str, caller: AdminCaller) -> CheckoutResponse:
    current_domain.process(RefundCheckout(checkout_id=checkout_id), asynchronous=False)
    return _checkout_response(checkout_id)
