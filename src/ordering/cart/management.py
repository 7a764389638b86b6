"""Cart management — resolving, clearing and merging carts.

Carts are created lazily: resolving an owner that has no cart yet persists
an empty one.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.errors import InvalidOwner

logger = structlog.get_logger(__name__)


def resolve_cart(repo, user_id=None, guest_id=None) -> Cart:
    """Return the owner's cart, creating and persisting an empty one if needed."""
    if not user_id and not guest_id:
        raise InvalidOwner("Either userId or guestId is required")

    cart = repo.for_owner(user_id=user_id, guest_id=guest_id)
    if cart is None:
        cart = Cart.create(user_id=user_id, guest_id=guest_id)
        repo.add(cart)
    return cart


@ordering.command(part_of="Cart")
class ResolveCart:
    """Fetch the owner's cart, creating an empty one on first use."""

    user_id = Identifier()
    guest_id = String(max_length=255)


@ordering.command(part_of="Cart")
class ClearCart:
    user_id = Identifier()
    guest_id = String(max_length=255)


@ordering.command(part_of="Cart")
class MergeGuestCart:
    """Move a guest session's cart lines into a signed-in user's cart."""

    user_id = Identifier(required=True)
    guest_id = String(required=True, max_length=255)


@ordering.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(ResolveCart)
    def resolve(self, command):
        repo = current_domain.repository_for(Cart)
        cart = resolve_cart(repo, user_id=command.user_id, guest_id=command.guest_id)
        return str(cart.id)

    @handle(ClearCart)
    def clear(self, command):
        repo = current_domain.repository_for(Cart)
        cart = resolve_cart(repo, user_id=command.user_id, guest_id=command.guest_id)
        cart.clear()
        repo.add(cart)
        return str(cart.id)

    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        repo = current_domain.repository_for(Cart)
        user_cart = resolve_cart(repo, user_id=command.user_id)

        guest_cart = repo.for_guest(command.guest_id)
        if guest_cart is None:
            return str(user_cart.id)

        lines = [item.to_snapshot() for item in guest_cart.items]
        user_cart.merge_lines(lines, source_guest_id=command.guest_id)
        repo.add(user_cart)
        repo.remove(guest_cart)

        logger.info(
            "Guest cart merged into user cart",
            user_id=str(command.user_id),
            guest_id=command.guest_id,
            items_merged=len(lines),
        )
        return str(user_cart.id)
