"""
Cart Pricing Package

Prices a shopping cart built from nested product bundles and runs the
subtotal through an ordered pipeline of price adjustments (discounts, VAT).
"""

__version__ = "1.0.0"
