"""
In-memory view of one user's cart.

Lines are keyed by product id. The rules live here so the service only has to
load rows, apply an operation and write the result back:
- quantity is at least 1 (setting less removes the line)
- quantity never exceeds the product's max_per_user nor its stock
- adding a product already in the cart increments its quantity
"""

from typing import Any, Dict, Iterable, List

from app.config.messages import message
from app.modules.cart.schemas import CartLineResponse, CartResponse
from app.modules.products.schemas import ProductResponse


class CartRuleError(Exception):
    """An operation would break a cart rule. The message is user-facing."""


class CartState:
    def __init__(self):
        self._lines: Dict[str, Dict[str, Any]] = {}

    @classmethod
    def from_rows(cls, rows: Iterable[Dict[str, Any]], products: Dict[str, Dict[str, Any]]) -> "CartState":
        """Build from cart_items rows; rows whose product no longer exists are dropped"""
        state = cls()
        for row in rows:
            product = products.get(row.get("product_id"))
            if product is None:
                continue
            state._lines[product["id"]] = {"product": product, "quantity": row.get("quantity") or 1}
        return state

    @staticmethod
    def allowed_quantity(product: Dict[str, Any]) -> int:
        max_per_user = product.get("max_per_user") or 1
        stock = product.get("stock")
        return max_per_user if stock is None else min(max_per_user, stock)

    def _check(self, product: Dict[str, Any], quantity: int):
        max_per_user = product.get("max_per_user") or 1
        if quantity > max_per_user:
            raise CartRuleError(message("CART.MAX_PER_USER", max_per_user=max_per_user))
        stock = product.get("stock")
        if stock is not None and quantity > stock:
            raise CartRuleError(message("CART.OUT_OF_STOCK"))

    def quantity_of(self, product_id: str) -> int:
        line = self._lines.get(product_id)
        return line["quantity"] if line else 0

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def add(self, product: Dict[str, Any], quantity: int = 1) -> int:
        """Add quantity units; returns the new line quantity"""
        if quantity < 1:
            raise CartRuleError(message("CART.ADD_ERROR"))
        new_quantity = self.quantity_of(product["id"]) + quantity
        self._check(product, new_quantity)
        self._lines[product["id"]] = {"product": product, "quantity": new_quantity}
        return new_quantity

    def set_quantity(self, product: Dict[str, Any], quantity: int) -> int:
        """Set the line quantity; below 1 leaves the line as is. Returns the line quantity."""
        if quantity < 1:
            return self.quantity_of(product["id"])
        self._check(product, quantity)
        self._lines[product["id"]] = {"product": product, "quantity": quantity}
        return quantity

    def remove(self, product_id: str) -> bool:
        return self._lines.pop(product_id, None) is not None

    def clear(self):
        self._lines.clear()

    def replace(self, items: Iterable[Dict[str, Any]], products: Dict[str, Dict[str, Any]]) -> List[str]:
        """
        Replace the whole cart with a client snapshot (last write wins).
        Unknown products are dropped and quantities are clamped to what the
        product allows. Returns the ids of lines that were dropped.
        """
        self._lines.clear()
        dropped = []
        for item in items:
            product = products.get(item["product_id"])
            quantity = min(item.get("quantity") or 1, self.allowed_quantity(product)) if product else 0
            if quantity < 1:
                dropped.append(item["product_id"])
                continue
            self._lines[product["id"]] = {"product": product, "quantity": quantity}
        return dropped

    @property
    def item_count(self) -> int:
        return sum(line["quantity"] for line in self._lines.values())

    @property
    def total_coins(self) -> float:
        return sum((line["product"].get("price") or 0) * line["quantity"] for line in self._lines.values())

    def lines(self) -> List[Dict[str, Any]]:
        return [
            {"product_id": product_id, "quantity": line["quantity"], "product": line["product"]}
            for product_id, line in self._lines.items()
        ]

    def to_rows(self, user_id: str) -> List[Dict[str, Any]]:
        return [
            {"user_id": user_id, "product_id": product_id, "quantity": line["quantity"]}
            for product_id, line in self._lines.items()
        ]

    def to_response(self) -> CartResponse:
        items = [
            CartLineResponse(
                product_id=line["product_id"],
                quantity=line["quantity"],
                product=ProductResponse(**line["product"]),
                line_total=(line["product"].get("price") or 0) * line["quantity"],
            )
            for line in self.lines()
        ]
        return CartResponse(items=items, item_count=self.item_count, total_coins=self.total_coins)
