"""
Data models for the cart pricing engine.

Uses dataclasses for structured, type-safe data representation. All money
values are Decimals; numeric input is converted through its string form so
that 0.1 stays 0.1.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from ..errors import InvalidBonusPointsError, InvalidPriceError, InvalidQuantityError, PricingError

Number = Union[Decimal, int, float, str]

# Upper bound for a unit price; keeps cart arithmetic well inside Decimal range
MAX_UNIT_PRICE = Decimal("1e30")


def to_decimal(value: Number, error_cls: type = PricingError, label: str = "value") -> Decimal:
    """Convert a number-like value to Decimal, raising error_cls on garbage."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise error_cls(f"{label} must be a number, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise error_cls(f"{label} must be a number, got {value!r}") from None


def check_quantity(quantity: int, label: str = "quantity") -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantityError(f"{label} must be an integer, got {quantity!r}")
    if quantity < 1:
        raise InvalidQuantityError(f"{label} must be at least 1, got {quantity}")
    return quantity


@dataclass(frozen=True)
class Item:
    """A purchasable article. Immutable once constructed."""
    id: str
    name: str
    unit_price: Decimal
    quantity: int = 1
    is_sale_item: bool = False
    is_bonus_eligible: bool = False

    def __post_init__(self):
        price = to_decimal(self.unit_price, InvalidPriceError, f"unit_price of {self.id}")
        if not price.is_finite() or price < 0:
            raise InvalidPriceError(f"unit_price of {self.id} must be >= 0, got {price}")
        if price >= MAX_UNIT_PRICE:
            raise InvalidPriceError(f"unit_price of {self.id} must be below {MAX_UNIT_PRICE}, got {price}")
        object.__setattr__(self, 'unit_price', price)
        check_quantity(self.quantity, f"quantity of {self.id}")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class Customer:
    """The shopper a cart belongs to. Read-only for the pricing engine."""
    id: str
    email: str
    is_new_customer: bool = False
    birthday: Optional[date] = None
    bonus_points: int = 0

    def __post_init__(self):
        if isinstance(self.bonus_points, bool) or not isinstance(self.bonus_points, int):
            raise InvalidBonusPointsError(f"bonus_points must be an integer, got {self.bonus_points!r}")
        if self.bonus_points < 0:
            raise InvalidBonusPointsError(f"bonus_points must be >= 0, got {self.bonus_points}")

    def has_birthday_on(self, day: date) -> bool:
        """True when the birthday's month and day match; the year is ignored."""
        if self.birthday is None:
            return False
        return (self.birthday.month, self.birthday.day) == (day.month, day.day)


@dataclass(frozen=True)
class PriceContext:
    """Snapshot handed to each price adjustment. Built fresh per step."""
    customer: Customer
    items: tuple[Item, ...]
    intermediate_amount: Decimal
    today: date

    @property
    def has_sale_items(self) -> bool:
        return any(item.is_sale_item for item in self.items)


@dataclass
class TraceStep:
    """A single step in the cart calculation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class CartResult:
    """Complete result of a cart calculation."""
    customer_id: str
    subtotal: Decimal
    total: Decimal
    item_count: int
    bonus_points: int
    applied_rules: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the result-level trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable result trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)
