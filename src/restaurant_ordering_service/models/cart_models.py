"""Cart models for the waiter's in-progress order.

The cart is purely local state: it is never persisted and is only read when an
order is placed. All money arithmetic uses ``Decimal``.
"""

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field

from restaurant_ordering_service.models.menu_models import MenuItem

CENTS = Decimal("0.01")


class CartItem(MenuItem):
    """Snapshot of a menu item with the quantity selected for the table."""

    quantity: int = Field(..., description="Number of portions ordered", gt=0)

    @property
    def line_total(self) -> Decimal:
        """Price of this line (price x quantity)."""
        return self.price * self.quantity


class CartSummary(BaseModel):
    """Serializable view of the cart and its totals."""

    items: list[CartItem]
    total_items: int
    total_price: Decimal


class Cart:
    """Ordered collection of cart items keyed by menu item id.

    Entries keep the order in which they were first added. Totals are computed
    fresh on every access.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CartItem] = {}

    def add(self, item: MenuItem) -> CartItem:
        """Add one portion of ``item``.

        Args:
            item: The menu item selected by the waiter

        Returns:
            CartItem: The cart entry after the increment
        """
        existing = self._entries.get(item.id)
        if existing is not None:
            updated = existing.model_copy(update={"quantity": existing.quantity + 1})
        else:
            updated = CartItem(**item.model_dump(), quantity=1)

        self._entries[item.id] = updated
        return updated

    def adjust_quantity(self, item_id: str, delta: int) -> CartItem | None:
        """Change the quantity of an entry by ``delta``.

        The entry is removed once its quantity would reach zero or below.
        Unknown ids are ignored.

        Args:
            item_id: Menu item id of the entry
            delta: Signed change in quantity

        Returns:
            The updated entry, or None if it was removed or never existed
        """
        existing = self._entries.get(item_id)
        if existing is None:
            return None

        new_quantity = existing.quantity + delta
        if new_quantity <= 0:
            del self._entries[item_id]
            return None

        updated = existing.model_copy(update={"quantity": new_quantity})
        self._entries[item_id] = updated
        return updated

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()

    def discard(self, sent: list[CartItem]) -> None:
        """Take already-ordered portions out of the cart.

        Portions added after ``sent`` was captured stay in the cart.

        Args:
            sent: Cart entries as they were when the order was placed
        """
        for line in sent:
            self.adjust_quantity(line.id, -line.quantity)

    def get(self, item_id: str) -> CartItem | None:
        return self._entries.get(item_id)

    @property
    def items(self) -> list[CartItem]:
        return list(self._entries.values())

    @property
    def is_empty(self) -> bool:
        return not self._entries

    @property
    def total_items(self) -> int:
        """Sum of quantities over all entries."""
        return sum(entry.quantity for entry in self._entries.values())

    @property
    def total_price(self) -> Decimal:
        """Sum of price x quantity over all entries, rounded to cents."""
        total = sum((entry.line_total for entry in self._entries.values()), Decimal("0"))
        return total.quantize(CENTS, rounding=ROUND_HALF_UP)

    def summary(self) -> CartSummary:
        return CartSummary(
            items=self.items,
            total_items=self.total_items,
            total_price=self.total_price,
        )

    def __len__(self) -> int:
        return len(self._entries)
