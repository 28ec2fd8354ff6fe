"""
Streamlit UI for the cart pricing engine.

Features:
- Sample cart with nested bundles
- Customer toggles (new customer, birthday today)
- Ordered price rule selection
- Subtotal, total and bonus point metrics with a calculation trace
"""
import streamlit as st
import sys
from datetime import date
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from cart_pricing.config.settings import get_settings
from cart_pricing.data.cart_loader import CartSpec, build_cart, sample_cart_path
from cart_pricing.engine.adjustments import RULES
from cart_pricing.errors import PricingError
from cart_pricing.services.cart_report import (
    components_frame,
    items_frame,
    quantities_by_item,
    rule_steps_frame,
)


st.set_page_config(
    page_title="Cart Pricing",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_sample_spec() -> CartSpec:
    """Get the cached sample cart document."""
    return CartSpec.model_validate_json(sample_cart_path().read_text(encoding='utf-8'))


settings = get_settings()
spec = get_sample_spec()
today = date.today()

RULE_LABELS = {
    'new_customer': "New customer discount",
    'birthday': "Birthday discount",
    'volume': "Volume discount",
    'vat': "VAT",
}


# ============================================================================
# SIDEBAR: Customer Context
# ============================================================================
with st.sidebar:
    st.header("👤 Customer")

    with st.container(border=True):
        st.markdown(f"**{spec.customer.email}**")
        is_new = st.toggle("New customer", value=spec.customer.is_new_customer)
        birthday_today = st.toggle("Birthday today", value=False)

    st.divider()
    st.header("🔧 Price Rules")
    st.caption("Rules run top to bottom. VAT usually goes last.")
    selected_rules = st.multiselect(
        "Rules",
        options=list(RULES),
        default=spec.rules,
        format_func=lambda name: RULE_LABELS.get(name, name),
        label_visibility="collapsed",
    )


customer_spec = spec.customer.model_copy(update={
    'is_new_customer': is_new,
    'birthday': today.replace(year=2000) if birthday_today else None,
})
session_spec = spec.model_copy(update={'customer': customer_spec, 'rules': selected_rules})

try:
    cart = build_cart(session_spec, settings=settings, today=today)
    result = cart.calculate()
except PricingError as e:
    st.error(f"Cart Error: {e}")
    st.stop()


# ============================================================================
# MAIN CONTENT
# ============================================================================
st.title("Cart Pricing")
st.caption(f"{settings.currency} | {today.strftime('%Y-%m-%d')}")

m1, m2, m3, m4 = st.columns(4)
m1.metric("Items", result.item_count)
m2.metric("Subtotal", f"{result.subtotal:,.2f} {settings.currency}")
m3.metric("Total", f"{result.total:,.2f} {settings.currency}",
          delta=f"{result.total - cart.round_price(result.subtotal):,.2f}")
m4.metric("Bonus Points", result.bonus_points)

for warning in result.warnings:
    st.warning(warning)

tab1, tab2, tab3 = st.tabs(["🌳 Cart Tree", "📦 Items", "🧾 Calculation"])

with tab1:
    df = components_frame(cart)
    df['Name'] = df.apply(lambda row: "    " * int(row['Depth']) + row['Name'], axis=1)
    st.dataframe(df.drop(columns=['Depth']), use_container_width=True, hide_index=True)

with tab2:
    st.dataframe(items_frame(cart), use_container_width=True, hide_index=True)
    with st.expander("Quantities per article (volume tiers)"):
        st.dataframe(quantities_by_item(cart), use_container_width=True)

with tab3:
    if result.applied_rules:
        for index, description in enumerate(result.applied_rules, start=1):
            st.markdown(f"{index}. {description}")
    else:
        st.info("No price rules selected.")
    st.dataframe(rule_steps_frame(result), use_container_width=True, hide_index=True)
