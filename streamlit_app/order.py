"""Streamlit price-breakdown preview for a hand-built cart."""

import streamlit as st
from sqlalchemy import select

from app.models import MenuItem, Restaurant
from app.services.coupon_redemption import load_coupon_candidates
from app.services.money import Money
from app.services.pricing_errors import PricingError
from app.services.pricing_service import LineItem, OrderDraft, price_order
from app.services.settings_service import get_fee_policy
from app.utils.time import utc_now
from streamlit_app.common import get_session

st.set_page_config(page_title="Order", layout="centered")
st.title("Order / Price preview")

with get_session() as db:
    restaurants = db.scalars(select(Restaurant).where(Restaurant.is_active.is_(True)).order_by(Restaurant.name)).all()
    if not restaurants:
        st.warning("No restaurants configured.")
        st.stop()

    restaurant_map = {f"{r.name} ({r.slug})": r for r in restaurants}
    restaurant = restaurant_map[st.selectbox("Restaurant", list(restaurant_map.keys()))]
    policy = get_fee_policy(db, restaurant.id)

    items = db.scalars(
        select(MenuItem).where(MenuItem.restaurant_id == restaurant.id, MenuItem.is_active.is_(True)).order_by(MenuItem.name)
    ).all()
    quantities: dict[int, int] = {}
    for item in items:
        quantities[item.id] = st.number_input(
            f"{item.name} - {Money(item.price_cents, policy.currency).format()}",
            min_value=0,
            step=1,
            value=0,
            key=f"qty_{item.id}",
        )

    fulfillment_mode = st.radio("Fulfillment", ["DELIVERY", "PICKUP"], horizontal=True)
    coupon_code = st.text_input("Coupon code").strip() or None

    if st.button("Preview price"):
        line_items = [
            LineItem(menu_item_id=item.id, unit_price=Money(item.price_cents, policy.currency), quantity=int(quantities[item.id]))
            for item in items
            if quantities[item.id] > 0
        ]
        draft = OrderDraft(
            line_items=line_items,
            fulfillment_mode=fulfillment_mode,
            coupon_code=coupon_code,
            restaurant_id=restaurant.id,
            currency=policy.currency,
        )
        coupons = load_coupon_candidates(db, coupon_code, restaurant.id, policy.currency) if coupon_code else []
        try:
            result = price_order(draft, policy=policy, now=utc_now(), coupons=coupons)
        except PricingError as exc:
            st.error(exc.reason)
        else:
            st.table(
                [
                    {"line": "Subtotal", "amount": result.subtotal.format()},
                    {"line": "Delivery", "amount": result.delivery_charge.format()},
                    {"line": "Processing fee", "amount": result.processing_fee.format()},
                    {"line": "Platform fee", "amount": result.platform_fee.format()},
                    {"line": f"Discount ({result.coupon_code or 'none'})", "amount": f"-{result.discount.format()}"},
                    {"line": "Total", "amount": result.grand_total.format()},
                ]
            )
