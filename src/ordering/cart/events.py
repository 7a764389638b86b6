"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Cart")
class CartItemAdded:
    """A product variant was added to the cart, or its quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    size = String()
    color = String()
    quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    total_price = Float(required=True)


@ordering.event(part_of="Cart")
class CartQuantityUpdated:
    """A cart line's quantity was set to a new absolute value."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    size = String()
    color = String()
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    total_price = Float(required=True)


@ordering.event(part_of="Cart")
class CartItemRemoved:
    """A cart line was removed."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    size = String()
    color = String()
    total_price = Float(required=True)


@ordering.event(part_of="Cart")
class CartCleared:
    """All lines were removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    items_removed_count = Integer(required=True)


@ordering.event(part_of="Cart")
class CartsMerged:
    """A guest cart's lines were merged into a registered user's cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    source_guest_id = String()
    items_merged_count = Integer(required=True)
    total_price = Float(required=True)
