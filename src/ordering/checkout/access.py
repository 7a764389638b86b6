"""Loading checkouts on behalf of a caller."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.checkout.checkout import Checkout
from ordering.errors import Forbidden, NotFound


def load_checkout(checkout_id) -> Checkout:
    try:
        return current_domain.repository_for(Checkout).get(str(checkout_id))
    except ObjectNotFoundError as exc:
        raise NotFound("Checkout not found", {"checkout_id": str(checkout_id)}) from exc


def checkout_for_caller(checkout_id, caller_user_id) -> Checkout:
    """Load a checkout and make sure the caller owns it."""
    checkout = load_checkout(checkout_id)
    if str(checkout.user_id) != str(caller_user_id):
        raise Forbidden("Not authorized to access this checkout", {"checkout_id": str(checkout_id)})
    return checkout
