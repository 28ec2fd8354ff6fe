"""
Cart Report - tabular views of a cart for the UI and console demo.
"""
import pandas as pd

from ..engine.cart import Cart
from ..engine.models import CartResult

COMPONENT_COLUMNS = ['Depth', 'Kind', 'Name', 'Quantity', 'Discount', 'Value']
ITEM_COLUMNS = ['ID', 'Name', 'Unit Price', 'Quantity', 'Line Total', 'Sale', 'Bonus']
STEP_COLUMNS = ['Step', 'Description', 'Value']


def components_frame(cart: Cart) -> pd.DataFrame:
    """One row per tree node, depth-first, bundles before their children."""
    rows = []
    for component in cart.components:
        for depth, node in component.iter_components():
            rows.append({
                'Depth': depth,
                'Kind': 'Bundle' if node.is_group else 'Item',
                'Name': node.name,
                'Quantity': node.quantity,
                'Discount': float(node.discount) if node.is_group else 0.0,
                'Value': float(node.aggregate_value()),
            })
    return pd.DataFrame(rows, columns=COMPONENT_COLUMNS)


def items_frame(cart: Cart) -> pd.DataFrame:
    """One row per flattened item. The same id may appear more than once."""
    rows = [
        {
            'ID': item.id,
            'Name': item.name,
            'Unit Price': float(item.unit_price),
            'Quantity': item.quantity,
            'Line Total': float(item.line_total),
            'Sale': item.is_sale_item,
            'Bonus': item.is_bonus_eligible,
        }
        for item in cart.all_items()
    ]
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)


def quantities_by_item(cart: Cart) -> pd.Series:
    """Summed quantity per item id, the figure volume tiers are checked against."""
    df = items_frame(cart)
    if df.empty:
        return pd.Series(dtype='int64', name='Quantity')
    return df.groupby('ID', sort=False)['Quantity'].sum()


def rule_steps_frame(result: CartResult) -> pd.DataFrame:
    """The calculation trace as a table."""
    rows = [
        {'Step': t.step, 'Description': t.description, 'Value': t.value or ''}
        for t in result.trace
    ]
    return pd.DataFrame(rows, columns=STEP_COLUMNS)
