"""Cart aggregate — per-user or per-guest line items with a derived total.

Lines are identified by (product, size, color): adding the same variant
again increases the existing line instead of appending a duplicate. The
total is always computed from the lines and never stored on its own.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartsMerged,
)
from ordering.domain import ordering
from ordering.errors import InvalidOwner, LineNotFound
from ordering.shared.limits import MAX_LINE_QUANTITY


def _variant(value):
    # Empty strings and None both mean "no variant chosen"
    return value or None


def _check_line_quantity(quantity):
    if quantity > MAX_LINE_QUANTITY:
        raise ValidationError({"quantity": [f"Quantity cannot exceed {MAX_LINE_QUANTITY} per line"]})


@ordering.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    name = String(max_length=255, default="")
    image = String(max_length=1024, default="")
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1, max_value=MAX_LINE_QUANTITY)
    size = String(max_length=50)
    color = String(max_length=50)
    added_at = DateTime()

    def matches(self, product_id, size=None, color=None):
        return (
            str(self.product_id) == str(product_id)
            and _variant(self.size) == _variant(size)
            and _variant(self.color) == _variant(color)
        )

    @property
    def line_total(self):
        return self.unit_price * self.quantity

    def to_snapshot(self):
        return {
            "product_id": str(self.product_id),
            "name": self.name,
            "image": self.image,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "size": self.size,
            "color": self.color,
        }


@ordering.aggregate
class Cart:
    user_id = Identifier()
    guest_id = String(max_length=255)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_must_have_exactly_one_owner(self):
        if bool(self.user_id) == bool(self.guest_id):
            raise ValidationError({"owner": ["A cart belongs to exactly one of a user or a guest"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id=None, guest_id=None):
        if not user_id and not guest_id:
            raise InvalidOwner("Either userId or guestId is required")

        now = datetime.now(UTC)
        # A signed-in user's cart is keyed by user only
        return cls(
            user_id=user_id or None,
            guest_id=None if user_id else guest_id,
            created_at=now,
            updated_at=now,
        )

    @property
    def total_price(self):
        return sum(item.line_total for item in self.items)

    def find_line(self, product_id, size=None, color=None):
        return next((i for i in self.items if i.matches(product_id, size, color)), None)

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_item(self, product_id, name, image, unit_price, quantity, size=None, color=None):
        """Add a product variant, or increase the quantity of its existing line."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = self.find_line(product_id, size, color)
        _check_line_quantity(quantity + (existing.quantity if existing else 0))

        if existing:
            existing.quantity += quantity
            new_quantity = existing.quantity
        else:
            self.add_items(
                CartItem(
                    product_id=product_id,
                    name=name or "",
                    image=image or "",
                    unit_price=unit_price,
                    quantity=quantity,
                    size=_variant(size),
                    color=_variant(color),
                    added_at=now,
                )
            )
            new_quantity = quantity

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                product_id=str(product_id),
                size=_variant(size),
                color=_variant(color),
                quantity=quantity,
                new_quantity=new_quantity,
                total_price=self.total_price,
            )
        )

    def update_quantity(self, product_id, quantity, size=None, color=None):
        """Set a line's quantity; zero or less removes the line."""
        line = self.find_line(product_id, size, color)
        if line is None:
            raise LineNotFound(
                "Product not found in cart",
                {"product_id": str(product_id), "size": size, "color": color},
            )

        if quantity <= 0:
            self._remove_line(line)
            return

        _check_line_quantity(quantity)

        previous_quantity = line.quantity
        line.quantity = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                size=_variant(size),
                color=_variant(color),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
                total_price=self.total_price,
            )
        )

    def remove_item(self, product_id, size=None, color=None):
        """Remove the matching line. Removing nothing is an error, not a no-op."""
        line = self.find_line(product_id, size, color)
        if line is None:
            raise LineNotFound(
                "Item not found in cart",
                {"product_id": str(product_id), "size": size, "color": color},
            )
        self._remove_line(line)

    def _remove_line(self, line):
        self.remove_items(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                product_id=str(line.product_id),
                size=_variant(line.size),
                color=_variant(line.color),
                total_price=self.total_price,
            )
        )

    def clear(self):
        removed = list(self.items)
        for line in removed:
            self.remove_items(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                items_removed_count=len(removed),
            )
        )

    # -------------------------------------------------------------------
    # Cart merging (guest → signed-in user)
    # -------------------------------------------------------------------
    def merge_lines(self, lines, source_guest_id=None):
        """Merge snapshot lines (dicts from ``CartItem.to_snapshot``) into this cart."""
        now = datetime.now(UTC)

        # Validate every merged quantity before touching any line
        merged = {}
        for line in lines:
            key = (str(line["product_id"]), _variant(line.get("size")), _variant(line.get("color")))
            if key not in merged:
                existing = self.find_line(*key)
                merged[key] = existing.quantity if existing else 0
            merged[key] += line["quantity"]
        for quantity in merged.values():
            _check_line_quantity(quantity)

        for line in lines:
            existing = self.find_line(line["product_id"], line.get("size"), line.get("color"))
            if existing:
                existing.quantity += line["quantity"]
            else:
                self.add_items(
                    CartItem(
                        product_id=line["product_id"],
                        name=line.get("name") or "",
                        image=line.get("image") or "",
                        unit_price=line["unit_price"],
                        quantity=line["quantity"],
                        size=_variant(line.get("size")),
                        color=_variant(line.get("color")),
                        added_at=now,
                    )
                )

        self.updated_at = now

        self.raise_(
            CartsMerged(
                cart_id=str(self.id),
                source_guest_id=source_guest_id,
                items_merged_count=len(lines),
                total_price=self.total_price,
            )
        )
