"""Engine subpackage - pricing tree, price adjustments and the cart."""
from .models import Item, Customer, PriceContext, CartResult, TraceStep
from .components import CartComponent, Product, Bundle
from .adjustments import (
    PriceAdjustment,
    NewCustomerDiscount,
    BirthdayDiscount,
    VolumeDiscount,
    VAT,
    build_rule,
)
from .cart import Cart

__all__ = [
    'Item', 'Customer', 'PriceContext', 'CartResult', 'TraceStep',
    'CartComponent', 'Product', 'Bundle',
    'PriceAdjustment', 'NewCustomerDiscount', 'BirthdayDiscount', 'VolumeDiscount', 'VAT', 'build_rule',
    'Cart',
]
