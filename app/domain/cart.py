import json
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel

from app.domain.models import LineItem

MAX_CART_QUANTITY = 2


class MenuItem(BaseModel):
    id: str
    name: str
    price: Decimal
    description: str


MENU = [
    MenuItem(
        id="margherita",
        name="Classic Margherita",
        price=Decimal("20"),
        description="A simple pizza with fresh mozzarella, and our signature organic tomato sauce",
    ),
    MenuItem(
        id="yoshi",
        name="Yoshi's Weekly Special",
        price=Decimal("25"),
        description="Flavorful pepperoni with melted cheese, basil, and Italian seasoning",
    ),
]
MENU_BY_ID = {item.id: item for item in MENU}


class CartItem(BaseModel):
    id: str
    name: str
    unit_price: Decimal
    quantity: int


class Cart:
    """
    Browser-side cart, capped at MAX_CART_QUANTITY pizzas in total.
    The server only ever sees it round-tripped through a cookie.
    """

    def __init__(self, items: Optional[List[CartItem]] = None):
        self.items: List[CartItem] = list(items or [])

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> Decimal:
        return sum((item.unit_price * item.quantity for item in self.items), Decimal("0"))

    @property
    def is_full(self) -> bool:
        return self.total_quantity >= MAX_CART_QUANTITY

    def quantity_of(self, item_id: str) -> int:
        line = self._find(item_id)
        return line.quantity if line else 0

    def add(self, item_id: str) -> bool:
        """Adds one pizza. Returns False when the cart is full or the id is unknown."""
        menu_item = MENU_BY_ID.get(item_id)
        if menu_item is None or self.is_full:
            return False

        line = self._find(item_id)
        if line:
            line.quantity += 1
        else:
            self.items.append(
                CartItem(id=menu_item.id, name=menu_item.name, unit_price=menu_item.price, quantity=1)
            )
        return True

    def update_quantity(self, item_id: str, quantity: int) -> bool:
        quantity = max(quantity, 0)
        menu_item = MENU_BY_ID.get(item_id)
        if menu_item is None:
            return False

        new_total = self.total_quantity - self.quantity_of(item_id) + quantity
        if new_total > MAX_CART_QUANTITY:
            return False

        line = self._find(item_id)
        if quantity == 0:
            if line:
                self.items.remove(line)
            return True
        if line:
            line.quantity = quantity
        else:
            self.items.append(
                CartItem(id=menu_item.id, name=menu_item.name, unit_price=menu_item.price, quantity=quantity)
            )
        return True

    def remove(self, item_id: str) -> None:
        self.items = [item for item in self.items if item.id != item_id]

    def clear(self) -> None:
        self.items = []

    def to_line_items(self) -> List[LineItem]:
        return [
            LineItem(id=item.id, name=item.name, quantity=item.quantity, price=item.unit_price)
            for item in self.items
        ]

    # --- Cookie round trip ---

    def dumps(self) -> str:
        return json.dumps({item.id: item.quantity for item in self.items})

    @classmethod
    def loads(cls, raw: Optional[str]) -> "Cart":
        """Rebuilds a cart from {id: quantity}; prices always come from MENU."""
        cart = cls()
        if not raw:
            return cart
        try:
            quantities: Dict[str, int] = json.loads(raw)
        except ValueError:
            return cart
        if not isinstance(quantities, dict):
            return cart

        for item_id, quantity in quantities.items():
            if isinstance(quantity, int):
                cart.update_quantity(item_id, quantity)
        return cart

    def _find(self, item_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None
