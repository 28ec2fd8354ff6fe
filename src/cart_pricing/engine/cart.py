"""
Cart - orchestrates the pricing tree and the adjustment pipeline.

Calculation:
1. Sum the value of every top-level component (bundles recurse)
2. Flatten all items once for the adjustments to inspect
3. Fold the subtotal through each adjustment in registration order
4. Round the final amount once, half-up to the cent
"""
import logging
import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Optional

from ..config.settings import Settings, get_settings
from ..errors import ComponentAttachedError
from .adjustments import PriceAdjustment, VolumeDiscount
from .components import CartComponent
from .models import CartResult, Customer, Item, PriceContext

logger = logging.getLogger(__name__)

# Working precision for subtotal and pipeline arithmetic
PIPELINE_PRECISION = 60


class Cart:
    """
    A customer's cart: top-level components plus an ordered list of price
    adjustments. Subtotal and total are derived on every call, never stored.

    Not safe for concurrent mutation; guard a shared cart with one lock.
    """

    def __init__(self, customer: Customer, settings: Optional[Settings] = None,
                 today: Optional[date] = None):
        self.customer = customer
        self.settings = settings or get_settings()
        self._today = today
        self._components: list[CartComponent] = []
        self._rules: list[PriceAdjustment] = []

    @property
    def today(self) -> date:
        return self._today or date.today()

    # Cart management

    @property
    def components(self) -> list[CartComponent]:
        return list(self._components)

    def add_component(self, component: CartComponent) -> None:
        """Add a top-level component. A component can only be added once."""
        if component.parent is not None:
            raise ComponentAttachedError(f"{component.name!r} is already in a bundle or cart")
        component._parent = self
        self._components.append(component)

    def remove_component(self, component: CartComponent) -> bool:
        """Detach a top-level component. Returns False if it is not in the cart."""
        for index, existing in enumerate(self._components):
            if existing is component:
                del self._components[index]
                component._parent = None
                return True
        return False

    def all_items(self) -> list[Item]:
        """Every item in the cart, depth-first, bundles flattened away."""
        items = []
        for component in self._components:
            items.extend(component.flatten_items())
        return items

    # Rule management

    @property
    def rules(self) -> list[PriceAdjustment]:
        return list(self._rules)

    def add_rule(self, rule: PriceAdjustment) -> None:
        self._rules.append(rule)

    def clear_rules(self) -> None:
        self._rules = []

    def applied_rule_descriptions(self) -> list[str]:
        return [rule.describe() for rule in self._rules]

    # Price calculation

    def get_subtotal(self) -> Decimal:
        """Tree value before adjustments. Not rounded."""
        with localcontext() as ctx:
            ctx.prec = PIPELINE_PRECISION
            return sum((c.aggregate_value() for c in self._components), Decimal(0))

    def round_price(self, amount: Decimal) -> Decimal:
        quantum = self.settings.price_quantum
        with localcontext() as ctx:
            # quantize needs room for every integer digit plus the kept places
            ctx.prec = max(ctx.prec, amount.adjusted() - quantum.adjusted() + 2)
            return amount.quantize(quantum, rounding=ROUND_HALF_UP)

    def _run_pipeline(self, result: Optional[CartResult] = None) -> Decimal:
        amount = self.get_subtotal()
        items = tuple(self.all_items())
        today = self.today

        with localcontext() as ctx:
            ctx.prec = PIPELINE_PRECISION
            for rule in self._rules:
                context = PriceContext(
                    customer=self.customer,
                    items=items,
                    intermediate_amount=amount,
                    today=today,
                )
                new_amount = rule.apply(amount, context)
                logger.debug("%s: %s -> %s", rule.describe(), amount, new_amount)
                if result is not None:
                    result.add_trace("Rule Applied", rule.describe(), f"{amount} → {new_amount}")
                amount = new_amount

        return self.round_price(amount)

    def calculate_total(self) -> Decimal:
        """Subtotal folded through every adjustment, rounded to the cent."""
        return self._run_pipeline()

    def calculate(self) -> CartResult:
        """Calculate the total with a trace of every pipeline step."""
        subtotal = self.get_subtotal()
        result = CartResult(
            customer_id=self.customer.id,
            subtotal=subtotal,
            total=Decimal(0),
            item_count=self.item_count(),
            bonus_points=self.calculate_bonus_points(),
            applied_rules=self.applied_rule_descriptions(),
        )
        result.add_trace("Subtotal", f"{len(self._components)} components", str(subtotal))

        if not self._rules:
            result.add_trace("Rules", "No price rules registered")

        result.total = self._run_pipeline(result)
        result.add_trace("Rounding", "Half-up to the cent", str(result.total))

        for warning in self._overlap_warnings():
            result.add_warning(warning)

        logger.info("Cart for customer %s: subtotal %s, total %s", self.customer.id, subtotal, result.total)
        return result

    def _overlap_warnings(self) -> list[str]:
        """Volume discounts on items that already sit in a discounted bundle."""
        bundled_ids = set()
        for component in self._components:
            for _, node in component.iter_components():
                if node.is_group and node.discount > 0:
                    bundled_ids.update(item.id for item in node.flatten_items())

        warnings = []
        items = self.all_items()
        for rule in self._rules:
            if not isinstance(rule, VolumeDiscount):
                continue
            for item_id in rule.qualifying_ids(items):
                if item_id in bundled_ids:
                    warnings.append(
                        f"Volume discount for {item_id} stacks on a bundle discount"
                    )
        return warnings

    # Reporting

    def item_count(self) -> int:
        """Sum of top-level quantities; a bundle counts as its own multiplier."""
        return sum(component.quantity for component in self._components)

    def calculate_bonus_points(self) -> int:
        """
        One point per full currency unit of bonus-eligible items, multiplied
        on the customer's birthday. Independent of the adjustments.
        """
        points = 0
        with localcontext() as ctx:
            ctx.prec = PIPELINE_PRECISION
            for item in self.all_items():
                if item.is_bonus_eligible:
                    points += math.floor(item.unit_price * item.quantity)

        if self.customer.has_birthday_on(self.today):
            points *= self.settings.birthday_bonus_multiplier

        return points
