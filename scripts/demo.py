#!/usr/bin/env python
"""
Console walkthrough of the cart pricing engine.

Usage:
    python scripts/demo.py [cart.json]
    python scripts/demo.py --ui        # open the Streamlit page instead
"""
import argparse
import subprocess
import sys
from datetime import date
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from cart_pricing.data.cart_loader import load_cart, sample_cart_path
from cart_pricing.engine import BirthdayDiscount, Cart, Customer, NewCustomerDiscount, Product, VAT
from cart_pricing.services.cart_report import components_frame


def demo(cart_path: Path):
    today = date.today()
    cart = load_cart(cart_path, today=today)
    customer = cart.customer
    currency = cart.settings.currency

    print("=== Cart Pricing Demo ===\n")
    print(f"Customer: {customer.email}")
    print(f"New customer: {customer.is_new_customer}")
    print(f"Birthday today: {customer.has_birthday_on(today)}")
    print()

    print("=== Cart Contents ===")
    print(components_frame(cart).to_string(index=False))
    print(f"\nItem count: {cart.item_count()}")
    print(f"Subtotal: {cart.get_subtotal():.2f} {currency}")
    print()

    print("=== Price Rules ===")
    for index, description in enumerate(cart.applied_rule_descriptions(), start=1):
        print(f"{index}. {description}")
    print()

    result = cart.calculate()
    print("=== Result ===")
    print(result.get_trace_text())
    for warning in result.warnings:
        print(f"WARNING: {warning}")
    print(f"\nTotal (after discounts and VAT): {result.total:.2f} {currency}")
    print(f"Bonus points earned: {result.bonus_points}")
    print()

    # Returning customer without birthday, single item
    print("=== Alternative: returning customer ===")
    returning = Customer(id=customer.id, email=customer.email, is_new_customer=False)
    cart2 = Cart(returning, settings=cart.settings, today=today)
    cart2.add_component(Product(cart.all_items()[0]))
    cart2.add_rule(NewCustomerDiscount(settings=cart.settings))
    cart2.add_rule(BirthdayDiscount(settings=cart.settings))
    cart2.add_rule(VAT(settings=cart.settings))
    print(f"Subtotal: {cart2.get_subtotal():.2f} {currency}")
    print(f"Total: {cart2.calculate_total():.2f} {currency}")


def launch_ui():
    app = src_path / 'cart_pricing' / 'ui' / 'app_streamlit.py'
    print(f"Opening {app.name} with Streamlit, Ctrl+C to quit")
    try:
        return subprocess.run([sys.executable, '-m', 'streamlit', 'run', str(app)]).returncode
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Cart pricing walkthrough")
    parser.add_argument("cart", nargs="?", type=Path, help="cart JSON document (default: sample cart)")
    parser.add_argument("--ui", action="store_true", help="start the Streamlit page")
    args = parser.parse_args()

    if args.ui:
        sys.exit(launch_ui())
    demo(args.cart or sample_cart_path())
