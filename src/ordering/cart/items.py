"""Cart line management — commands and handler.

Prices, names and images are read from the catalogue when a line is added;
the client only supplies the product id, variant and quantity.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.cart.management import resolve_cart
from ordering.catalogue.product import find_product
from ordering.domain import ordering
from ordering.errors import ProductNotFound


@ordering.command(part_of="Cart")
class AddToCart:
    user_id = Identifier()
    guest_id = String(max_length=255)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    size = String(max_length=50)
    color = String(max_length=50)


@ordering.command(part_of="Cart")
class UpdateCartQuantity:
    user_id = Identifier()
    guest_id = String(max_length=255)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)  # <= 0 removes the line
    size = String(max_length=50)
    color = String(max_length=50)


@ordering.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier()
    guest_id = String(max_length=255)
    product_id = Identifier(required=True)
    size = String(max_length=50)
    color = String(max_length=50)


@ordering.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = find_product(command.product_id)
        if product is None:
            raise ProductNotFound("Product not found", {"product_id": str(command.product_id)})

        repo = current_domain.repository_for(Cart)
        cart = resolve_cart(repo, user_id=command.user_id, guest_id=command.guest_id)
        cart.add_item(
            product_id=command.product_id,
            name=product.name,
            image=product.first_image,
            unit_price=product.price,
            quantity=command.quantity,
            size=command.size,
            color=command.color,
        )
        repo.add(cart)
        return str(cart.id)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = resolve_cart(repo, user_id=command.user_id, guest_id=command.guest_id)
        cart.update_quantity(
            product_id=command.product_id,
            quantity=command.quantity,
            size=command.size,
            color=command.color,
        )
        repo.add(cart)
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = resolve_cart(repo, user_id=command.user_id, guest_id=command.guest_id)
        cart.remove_item(
            product_id=command.product_id,
            size=command.size,
            color=command.color,
        )
        repo.add(cart)
        return str(cart.id)
