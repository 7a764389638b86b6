"""Repository for the Cart aggregate — carts are looked up by owner, not id."""

from ordering.cart.cart import Cart
from ordering.domain import ordering


@ordering.repository(part_of=Cart)
class CartRepository:
    def for_user(self, user_id) -> Cart | None:
        carts = self._dao.query.filter(user_id=str(user_id)).all().items
        return carts[0] if carts else None

    def for_guest(self, guest_id) -> Cart | None:
        carts = self._dao.query.filter(guest_id=str(guest_id)).all().items
        return carts[0] if carts else None

    def for_owner(self, user_id=None, guest_id=None) -> Cart | None:
        if user_id:
            return self.for_user(user_id)
        if guest_id:
            return self.for_guest(guest_id)
        return None

    def remove(self, cart: Cart) -> None:
        self._dao.delete(cart)

    def remove_for_user(self, user_id) -> bool:
        """Delete the user's cart if there is one. Returns whether a cart was deleted."""
        cart = self.for_user(user_id)
        if cart is None:
            return False
        self.remove(cart)
        return True
