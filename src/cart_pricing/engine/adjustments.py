"""
Price adjustments - discounts and taxes applied to the cart subtotal.

Each adjustment receives the running amount and a PriceContext and returns a
new amount. The cart applies them in registration order; the order matters.
Rates default to the configured settings and can be overridden per instance.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from ..config.settings import Settings, VolumeTier, get_settings, validate_volume_tiers
from ..errors import InvalidDiscountError, UnknownRuleError
from .models import Item, Number, PriceContext, to_decimal


def _rate(value: Number, label: str) -> Decimal:
    rate = to_decimal(value, InvalidDiscountError, label)
    if not rate.is_finite() or rate < 0:
        raise InvalidDiscountError(f"{label} must be >= 0, got {rate}")
    return rate


def format_percent(rate: Decimal) -> str:
    """0.077 -> '7.7', 0.05 -> '5'"""
    text = format(rate * 100, 'f')
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


class PriceAdjustment(ABC):
    """A step of the pricing pipeline. Must not mutate the context."""

    @abstractmethod
    def apply(self, amount: Decimal, context: PriceContext) -> Decimal:
        ...

    @abstractmethod
    def describe(self) -> str:
        ...

    def __repr__(self):
        return f"{type(self).__name__}()"


class NewCustomerDiscount(PriceAdjustment):
    """
    First-order discount for new customers, capped at a fixed amount.

    Skipped for the whole cart as soon as one sale item is in it.
    """

    def __init__(self, rate: Optional[Number] = None, max_discount: Optional[Number] = None,
                 settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.rate = _rate(settings.new_customer_rate if rate is None else rate, "new customer rate")
        self.max_discount = _rate(
            settings.new_customer_max_discount if max_discount is None else max_discount,
            "new customer max discount",
        )
        self.currency = settings.currency

    def apply(self, amount: Decimal, context: PriceContext) -> Decimal:
        if not context.customer.is_new_customer:
            return amount
        if context.has_sale_items:
            return amount
        discount = min(amount * self.rate, self.max_discount)
        return amount - discount

    def describe(self) -> str:
        return f"New customer discount ({format_percent(self.rate)}%, max {self.max_discount} {self.currency})"


class BirthdayDiscount(PriceAdjustment):
    """Percentage off on the customer's birthday. Not for new customers or sale carts."""

    def __init__(self, rate: Optional[Number] = None, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.rate = _rate(settings.birthday_rate if rate is None else rate, "birthday rate")

    def apply(self, amount: Decimal, context: PriceContext) -> Decimal:
        customer = context.customer
        if not customer.has_birthday_on(context.today):
            return amount
        # First orders get the new customer rate instead
        if customer.is_new_customer:
            return amount
        if context.has_sale_items:
            return amount
        return amount * (1 - self.rate)

    def describe(self) -> str:
        return f"Birthday discount ({format_percent(self.rate)}%)"


class VolumeDiscount(PriceAdjustment):
    """
    Tiered discount on articles bought in quantity.

    Quantities are summed per item id across the whole cart (the same article
    may sit in several lines or bundles). The discount is computed from the
    raw unit price and subtracted from the running amount, so it does not
    account for bundle discounts already applied to those items.
    """

    def __init__(self, tiers=None, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.tiers: tuple[VolumeTier, ...] = validate_volume_tiers(
            settings.volume_tiers if tiers is None else tiers
        )

    def rate_for_quantity(self, quantity: int) -> Decimal:
        """Highest tier rate whose threshold the quantity reaches, else 0."""
        rate = Decimal(0)
        for tier in self.tiers:
            if quantity >= tier.min_quantity:
                rate = tier.rate
        return rate

    def _quantities(self, items) -> dict[str, tuple[Item, int]]:
        totals: dict[str, tuple[Item, int]] = {}
        for item in items:
            first, qty = totals.get(item.id, (item, 0))
            totals[item.id] = (first, qty + item.quantity)
        return totals

    def qualifying_ids(self, items) -> list[str]:
        """Item ids whose summed quantity reaches at least one tier."""
        return [
            item_id for item_id, (_, qty) in self._quantities(items).items()
            if self.rate_for_quantity(qty) > 0
        ]

    def discount_for(self, items) -> Decimal:
        total = Decimal(0)
        for item, qty in self._quantities(items).values():
            rate = self.rate_for_quantity(qty)
            if rate > 0:
                total += item.unit_price * qty * rate
        return total

    def apply(self, amount: Decimal, context: PriceContext) -> Decimal:
        return amount - self.discount_for(context.items)

    def describe(self) -> str:
        top = max((t.rate for t in self.tiers), default=Decimal(0))
        return f"Volume discount (up to {format_percent(top)}%)"


class VAT(PriceAdjustment):
    """Value added tax. Applies unconditionally; usually registered last."""

    def __init__(self, rate: Optional[Number] = None, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.rate = _rate(settings.vat_rate if rate is None else rate, "VAT rate")

    def apply(self, amount: Decimal, context: PriceContext) -> Decimal:
        return amount * (1 + self.rate)

    def describe(self) -> str:
        return f"VAT ({format_percent(self.rate)}%)"


RULES = {
    'new_customer': NewCustomerDiscount,
    'birthday': BirthdayDiscount,
    'volume': VolumeDiscount,
    'vat': VAT,
}


def build_rule(name: str, settings: Optional[Settings] = None) -> PriceAdjustment:
    """Create a reference adjustment by its registry name."""
    key = str(name).strip().lower()
    if key not in RULES:
        raise UnknownRuleError(f"Unknown price rule '{name}'. Known rules: {', '.join(RULES)}")
    return RULES[key](settings=settings)
