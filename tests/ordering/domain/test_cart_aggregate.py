"""Tests for the Cart aggregate: ownership, line merging and totals."""

import pytest
from ordering.cart.cart import Cart
from ordering.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated, CartsMerged
from ordering.errors import InvalidOwner, LineNotFound
from protean.exceptions import ValidationError


def _cart_with_shirt(quantity=1, size="M", color="Blue"):
    cart = Cart.create(user_id="user-001")
    cart.add_item(
        product_id="prod-shirt",
        name="Classic Shirt",
        image="https://cdn.example.com/shirt.jpg",
        unit_price=25.0,
        quantity=quantity,
        size=size,
        color=color,
    )
    return cart


class TestCartCreation:
    def test_create_for_user(self):
        cart = Cart.create(user_id="user-001")
        assert str(cart.user_id) == "user-001"
        assert cart.guest_id is None
        assert len(cart.items) == 0
        assert cart.total_price == 0

    def test_create_for_guest(self):
        cart = Cart.create(guest_id="guest_123")
        assert cart.user_id is None
        assert cart.guest_id == "guest_123"

    def test_user_wins_when_both_given(self):
        cart = Cart.create(user_id="user-001", guest_id="guest_123")
        assert str(cart.user_id) == "user-001"
        assert cart.guest_id is None

    def test_create_without_owner_is_rejected(self):
        with pytest.raises(InvalidOwner):
            Cart.create()

    def test_cart_cannot_have_two_owners(self):
        with pytest.raises(ValidationError) as exc:
            Cart(user_id="user-001", guest_id="guest_123")
        assert "owner" in exc.value.messages


class TestAddItem:
    def test_add_new_line(self):
        cart = _cart_with_shirt(quantity=2)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2
        assert cart.total_price == 50.0

    def test_same_variant_increments_existing_line(self):
        cart = _cart_with_shirt(quantity=1)
        cart.add_item("prod-shirt", "Classic Shirt", "", 25.0, 2, size="M", color="Blue")

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3
        assert cart.total_price == 75.0

    def test_different_size_is_a_separate_line(self):
        cart = _cart_with_shirt(size="M")
        cart.add_item("prod-shirt", "Classic Shirt", "", 25.0, 1, size="L", color="Blue")
        assert len(cart.items) == 2

    def test_missing_variant_matches_empty_variant(self):
        cart = Cart.create(user_id="user-001")
        cart.add_item("prod-hat", "Wool Hat", "", 10.0, 1)
        cart.add_item("prod-hat", "Wool Hat", "", 10.0, 1, size="", color=None)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 2

    def test_zero_quantity_is_rejected(self):
        cart = Cart.create(user_id="user-001")
        with pytest.raises(ValidationError):
            cart.add_item("prod-hat", "Wool Hat", "", 10.0, 0)

    def test_quantity_above_line_limit_is_rejected(self):
        cart = Cart.create(user_id="user-001")
        with pytest.raises(ValidationError) as exc:
            cart.add_item("prod-socks", "Socks", "", 5.5, 1001)
        assert "quantity" in exc.value.messages
        assert len(cart.items) == 0

    def test_increment_past_line_limit_is_rejected(self):
        cart = _cart_with_shirt(quantity=1000)
        with pytest.raises(ValidationError):
            cart.add_item("prod-shirt", "Classic Shirt", "", 25.0, 1, size="M", color="Blue")
        assert cart.items[0].quantity == 1000

    def test_raises_item_added_event(self):
        cart = _cart_with_shirt(quantity=2)
        event = cart._events[-1]
        assert isinstance(event, CartItemAdded)
        assert event.new_quantity == 2
        assert event.total_price == 50.0


class TestUpdateQuantity:
    def test_sets_absolute_quantity(self):
        cart = _cart_with_shirt(quantity=5)
        cart.update_quantity("prod-shirt", 2, size="M", color="Blue")

        assert cart.items[0].quantity == 2
        assert cart.total_price == 50.0
        assert isinstance(cart._events[-1], CartQuantityUpdated)

    def test_zero_removes_the_line(self):
        cart = _cart_with_shirt(quantity=2)
        cart.update_quantity("prod-shirt", 0, size="M", color="Blue")

        assert len(cart.items) == 0
        assert cart.total_price == 0
        assert isinstance(cart._events[-1], CartItemRemoved)

    def test_unknown_line_is_reported(self):
        cart = _cart_with_shirt()
        with pytest.raises(LineNotFound):
            cart.update_quantity("prod-shirt", 3, size="XL", color="Blue")

    def test_quantity_above_line_limit_is_rejected(self):
        cart = _cart_with_shirt(quantity=2)
        with pytest.raises(ValidationError):
            cart.update_quantity("prod-shirt", 1001, size="M", color="Blue")
        assert cart.items[0].quantity == 2


class TestRemoveItem:
    def test_remove_matching_line(self):
        cart = _cart_with_shirt()
        cart.add_item("prod-hat", "Wool Hat", "", 10.0, 1)
        cart.remove_item("prod-shirt", size="M", color="Blue")

        assert len(cart.items) == 1
        assert cart.total_price == 10.0

    def test_size_mismatch_removes_nothing(self):
        cart = _cart_with_shirt(size="M")
        with pytest.raises(LineNotFound):
            cart.remove_item("prod-shirt", size="L", color="Blue")
        assert len(cart.items) == 1

    def test_omitted_variant_does_not_match_sized_line(self):
        cart = _cart_with_shirt(size="M", color="Blue")
        with pytest.raises(LineNotFound):
            cart.remove_item("prod-shirt")


class TestClearAndMerge:
    def test_clear_empties_cart(self):
        cart = _cart_with_shirt(quantity=3)
        cart.clear()

        assert len(cart.items) == 0
        assert cart.total_price == 0
        assert cart._events[-1].items_removed_count == 1
        assert isinstance(cart._events[-1], CartCleared)

    def test_merge_lines_uses_variant_identity(self):
        cart = _cart_with_shirt(quantity=1)
        guest = Cart.create(guest_id="guest_123")
        guest.add_item("prod-shirt", "Classic Shirt", "", 25.0, 2, size="M", color="Blue")
        guest.add_item("prod-hat", "Wool Hat", "", 10.0, 1)

        cart.merge_lines([item.to_snapshot() for item in guest.items], source_guest_id="guest_123")

        assert len(cart.items) == 2
        assert cart.find_line("prod-shirt", "M", "Blue").quantity == 3
        assert cart.total_price == 85.0
        assert isinstance(cart._events[-1], CartsMerged)
        assert cart._events[-1].items_merged_count == 2

    def test_merge_past_line_limit_changes_nothing(self):
        cart = _cart_with_shirt(quantity=600)
        guest = Cart.create(guest_id="guest_123")
        guest.add_item("prod-hat", "Wool Hat", "", 10.0, 1)
        guest.add_item("prod-shirt", "Classic Shirt", "", 25.0, 600, size="M", color="Blue")

        with pytest.raises(ValidationError):
            cart.merge_lines([item.to_snapshot() for item in guest.items], source_guest_id="guest_123")

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 600

    def test_total_tracks_every_mutation(self):
        cart = Cart.create(user_id="user-001")
        cart.add_item("prod-socks", "Socks", "", 5.5, 3)
        cart.add_item("prod-hat", "Wool Hat", "", 10.0, 1)
        cart.update_quantity("prod-socks", 1)

        expected = sum(item.unit_price * item.quantity for item in cart.items)
        assert cart.total_price == expected == 15.5

    def test_total_is_not_rounded(self):
        cart = Cart.create(user_id="user-001")
        cart.add_item("prod-pin", "Pin", "", 0.333, 3)
        assert cart.total_price == 0.333 * 3
        assert cart.total_price != 1.0
