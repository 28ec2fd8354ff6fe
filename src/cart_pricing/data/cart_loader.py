"""
Cart Loader - builds a Cart from a JSON document.

The document is validated with pydantic and then turned into engine objects
through their normal constructors, so domain checks (prices, quantities,
discounts) still raise PricingError subclasses.

Example document:

    {
      "customer": {"id": "c1", "email": "a@b.ch", "is_new_customer": true},
      "components": [
        {"kind": "item", "id": "laptop", "name": "Laptop", "unit_price": 1500},
        {"kind": "bundle", "name": "Cables", "discount": 0.1, "children": [...]}
      ],
      "rules": ["new_customer", "vat"]
    }
"""
import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..config.settings import Settings, get_settings
from ..engine.adjustments import build_rule
from ..engine.cart import Cart
from ..engine.components import Bundle, CartComponent, Product
from ..engine.models import Customer, Item
from ..errors import BundleDepthError

logger = logging.getLogger(__name__)

SAMPLE_CART = Path(__file__).parent / 'sample_cart.json'


class ItemSpec(BaseModel):
    """A single item line."""
    kind: Literal["item"]
    id: str
    name: str
    unit_price: Decimal
    quantity: int = 1
    is_sale_item: bool = False
    is_bonus_eligible: bool = False


class BundleSpec(BaseModel):
    """A bundle with nested children."""
    kind: Literal["bundle"]
    name: str
    quantity: int = 1
    discount: Decimal = Decimal("0")
    children: list["ComponentSpec"] = Field(default_factory=list)


ComponentSpec = Annotated[Union[ItemSpec, BundleSpec], Field(discriminator="kind")]
BundleSpec.model_rebuild()


class CustomerSpec(BaseModel):
    id: str
    email: str
    is_new_customer: bool = False
    birthday: Optional[date] = None
    bonus_points: int = 0


class CartSpec(BaseModel):
    """Top-level cart document."""
    customer: CustomerSpec
    components: list[ComponentSpec] = Field(default_factory=list)
    rules: list[str] = Field(default_factory=list)


def sample_cart_path() -> Path:
    """Path of the demo cart shipped with the package."""
    return SAMPLE_CART


def _check_depth(spec: BundleSpec, max_depth: int, depth: int = 1):
    """Walk bundle nesting iteratively so hostile input cannot blow the stack."""
    stack = [(spec, depth)]
    while stack:
        bundle, level = stack.pop()
        if level > max_depth:
            raise BundleDepthError(
                f"Bundle '{bundle.name}' is nested {level} levels deep (max {max_depth})"
            )
        for child in bundle.children:
            if isinstance(child, BundleSpec):
                stack.append((child, level + 1))


def build_component(spec: Union[ItemSpec, BundleSpec]) -> CartComponent:
    """Turn a validated component spec into a Product or Bundle."""
    if isinstance(spec, ItemSpec):
        return Product(Item(
            id=spec.id,
            name=spec.name,
            unit_price=spec.unit_price,
            quantity=spec.quantity,
            is_sale_item=spec.is_sale_item,
            is_bonus_eligible=spec.is_bonus_eligible,
        ))

    bundle = Bundle(spec.name, quantity=spec.quantity, discount=spec.discount)
    for child in spec.children:
        bundle.add(build_component(child))
    return bundle


def build_cart(spec: CartSpec, settings: Optional[Settings] = None,
               today: Optional[date] = None) -> Cart:
    """Create a Cart (components and rules) from a validated document."""
    settings = settings or get_settings()

    for component in spec.components:
        if isinstance(component, BundleSpec):
            _check_depth(component, settings.max_bundle_depth)

    customer = Customer(**spec.customer.model_dump())
    cart = Cart(customer, settings=settings, today=today)

    for component in spec.components:
        cart.add_component(build_component(component))
    for rule_name in spec.rules:
        cart.add_rule(build_rule(rule_name, settings=settings))

    logger.info(
        "Loaded cart for %s: %d components, %d rules",
        customer.id, len(spec.components), len(spec.rules),
    )
    return cart


def load_cart(source: Union[Path, str, dict], settings: Optional[Settings] = None,
              today: Optional[date] = None) -> Cart:
    """
    Load a cart from a file path, a JSON string or an already parsed dict.

    Raises pydantic.ValidationError for malformed documents and PricingError
    for values the engine rejects.
    """
    if isinstance(source, dict):
        spec = CartSpec.model_validate(source)
    elif isinstance(source, Path):
        with open(source, 'r', encoding='utf-8') as f:
            spec = CartSpec.model_validate(json.load(f))
    else:
        spec = CartSpec.model_validate_json(source)

    return build_cart(spec, settings=settings, today=today)
