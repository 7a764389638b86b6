"""Limits shared by cart, checkout and order lines."""

# Largest quantity a single line may carry. Carts and checkouts enforce it
# up front so that a paid checkout can always become an order.
MAX_LINE_QUANTITY = 1000
