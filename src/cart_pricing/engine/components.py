"""
Cart components - the pricing tree.

A cart holds components. A Product wraps a single Item, a Bundle holds other
components (products or bundles, nested arbitrarily) and applies its own
discount and multiplier before its value is folded into its parent.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterator

from ..errors import ComponentAttachedError, CyclicBundleError, InvalidDiscountError
from .models import Item, Number, check_quantity, to_decimal


class CartComponent(ABC):
    """Common interface of every node in the pricing tree."""

    # Bundle or Cart holding this node; set on add, cleared on remove
    _parent = None

    @property
    def parent(self):
        return self._parent

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def quantity(self) -> int:
        ...

    @property
    @abstractmethod
    def is_group(self) -> bool:
        ...

    @abstractmethod
    def aggregate_value(self) -> Decimal:
        """Value of this node including everything below it."""

    @abstractmethod
    def flatten_items(self) -> list[Item]:
        """All items below this node in depth-first order."""

    def iter_components(self, depth: int = 0) -> Iterator[tuple[int, 'CartComponent']]:
        """Yield (depth, component) for this node and its descendants."""
        yield depth, self


class Product(CartComponent):
    """Leaf: a single item line."""

    def __init__(self, item: Item):
        self.item = item

    @property
    def name(self) -> str:
        return self.item.name

    @property
    def quantity(self) -> int:
        return self.item.quantity

    @property
    def is_group(self) -> bool:
        return False

    def aggregate_value(self) -> Decimal:
        return self.item.unit_price * self.item.quantity

    def flatten_items(self) -> list[Item]:
        return [self.item]

    def __repr__(self):
        return f"Product({self.item.id!r}, qty={self.item.quantity})"


class Bundle(CartComponent):
    """
    Composite: a named group of components sold together.

    Value = sum of children x (1 - discount) x quantity. The discount is a
    fraction in [0, 1); an empty bundle is worth 0.
    """

    def __init__(self, name: str, quantity: int = 1, discount: Number = 0):
        self._name = name
        self._quantity = check_quantity(quantity, f"quantity of bundle {name!r}")
        discount = to_decimal(discount, InvalidDiscountError, f"discount of bundle {name!r}")
        if not discount.is_finite() or not (0 <= discount < 1):
            raise InvalidDiscountError(
                f"discount of bundle {name!r} must be in [0, 1), got {discount}"
            )
        self._discount = discount
        self._components: list[CartComponent] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def quantity(self) -> int:
        return self._quantity

    @property
    def is_group(self) -> bool:
        return True

    @property
    def discount(self) -> Decimal:
        return self._discount

    @property
    def components(self) -> list[CartComponent]:
        return list(self._components)

    def add(self, component: CartComponent) -> None:
        """
        Append a component. Refuses anything that would create a cycle and
        any component that already sits in a bundle or cart.
        """
        if component is self or any(node is self for _, node in component.iter_components()):
            raise CyclicBundleError(f"bundle {self._name!r} cannot contain itself")
        if component.parent is not None:
            raise ComponentAttachedError(f"{component.name!r} is already in a bundle or cart")
        component._parent = self
        self._components.append(component)

    def remove(self, component: CartComponent) -> bool:
        """Detach a direct child. Returns False (and does nothing) if absent."""
        for index, child in enumerate(self._components):
            if child is component:
                del self._components[index]
                component._parent = None
                return True
        return False

    def aggregate_value(self) -> Decimal:
        total = sum((c.aggregate_value() for c in self._components), Decimal(0))
        if self._discount > 0:
            total *= (1 - self._discount)
        return total * self._quantity

    def flatten_items(self) -> list[Item]:
        items = []
        for component in self._components:
            items.extend(component.flatten_items())
        return items

    def iter_components(self, depth: int = 0):
        yield depth, self
        for component in self._components:
            yield from component.iter_components(depth + 1)

    def __repr__(self):
        return f"Bundle({self._name!r}, qty={self._quantity}, discount={self._discount}, children={len(self._components)})"
