"""Streamlit operator console: coupons and fee settings."""

from datetime import datetime, time, timedelta
from decimal import Decimal

import streamlit as st
from sqlalchemy import select

from app.models import Coupon, Restaurant
from app.services.coupon_redemption import code_exists, list_coupons
from app.services.settings_service import get_deployment_fee_policy, save_deployment_fees
from app.utils.time import utc_now
from streamlit_app.common import format_cents, get_session, now_string

st.set_page_config(page_title="Admin", layout="wide")
st.title("Admin / Coupons & Fees")
st.caption(f"Last refresh: {now_string()}")

with get_session() as db:
    restaurants = db.scalars(select(Restaurant).order_by(Restaurant.name)).all()
    restaurant_map: dict[str, int | None] = {"Platform-wide": None}
    restaurant_map.update({f"{r.name} ({r.slug})": r.id for r in restaurants})
    restaurant_names = {r.id: r.name for r in restaurants}

    st.subheader("Coupons")
    coupons = list_coupons(db)
    st.dataframe(
        [
            {
                "id": c.id,
                "code": c.code,
                "restaurant": restaurant_names.get(c.restaurant_id, "Platform-wide"),
                "type": c.discount_type,
                "value": format_cents(int(c.discount_value)) if c.discount_type == "FIXED" else f"{c.discount_value}%",
                "min order": format_cents(c.min_order_amount_cents),
                "max discount": format_cents(c.max_discount_amount_cents),
                "valid": f"{c.start_date:%Y-%m-%d} .. {c.end_date:%Y-%m-%d}",
                "active": c.is_active,
                "usage": f"{c.usage_count}/{c.usage_limit}" if c.usage_limit is not None else str(c.usage_count),
            }
            for c in coupons
        ],
        use_container_width=True,
    )

    with st.form("new_coupon"):
        code = st.text_input("Code").strip()
        scope_label = st.selectbox("Restaurant", list(restaurant_map.keys()))
        discount_type = st.selectbox("Type", ["PERCENTAGE", "FIXED"])
        value = st.number_input("Value (percent, or cents for FIXED)", min_value=0, value=10, step=1)
        min_order = st.number_input("Minimum order (cents, 0 = none)", min_value=0, value=0, step=100)
        max_discount = st.number_input("Maximum discount (cents, 0 = none, PERCENTAGE only)", min_value=0, value=0, step=100)
        usage_limit = st.number_input("Usage limit (0 = unlimited)", min_value=0, value=0, step=1)
        start_day = st.date_input("Start date", value=utc_now().date())
        end_day = st.date_input("End date", value=(utc_now() + timedelta(days=30)).date())
        if st.form_submit_button("Create coupon") and code:
            restaurant_id = restaurant_map[scope_label]
            if discount_type == "PERCENTAGE" and value > 100:
                st.error("Percentage must not exceed 100.")
            elif end_day < start_day:
                st.error("End date must not be before start date.")
            elif code_exists(db, code, restaurant_id):
                st.error(f"Coupon {code} already exists for this restaurant.")
            else:
                db.add(
                    Coupon(
                        restaurant_id=restaurant_id,
                        code=code,
                        discount_type=discount_type,
                        discount_value=Decimal(int(value)),
                        min_order_amount_cents=int(min_order) or None,
                        max_discount_amount_cents=(int(max_discount) or None) if discount_type == "PERCENTAGE" else None,
                        start_date=datetime.combine(start_day, time.min),
                        end_date=datetime.combine(end_day, time.max.replace(microsecond=0)),
                        is_active=True,
                        usage_limit=int(usage_limit) or None,
                        usage_count=0,
                    )
                )
                db.commit()
                st.success(f"Coupon {code} created")

    coupon_map = {f"{c.code} (#{c.id})": c for c in coupons}
    if coupon_map:
        selected = coupon_map[st.selectbox("Toggle coupon", list(coupon_map.keys()))]
        label = "Deactivate" if selected.is_active else "Activate"
        if st.button(label):
            selected.is_active = not selected.is_active
            db.commit()
            st.success(f"{selected.code} is now {'active' if selected.is_active else 'inactive'}")

    st.subheader("Deployment fees")
    policy = get_deployment_fee_policy(db)
    with st.form("fees"):
        delivery_fee = st.number_input("Delivery fee (cents)", min_value=0, value=policy.delivery_fee_cents, step=1)
        processing_rate = st.text_input("Processing rate", value=str(policy.processing_rate))
        processing_fixed = st.number_input(
            "Processing fixed fee (cents)", min_value=0, value=policy.processing_fixed_fee_cents, step=1
        )
        platform_fee = st.number_input("Platform fee (cents)", min_value=0, value=policy.platform_fee_cents, step=1)
        if st.form_submit_button("Save fees"):
            try:
                rate = Decimal(processing_rate)
            except ArithmeticError:
                st.error("Processing rate must be a decimal such as 0.029.")
            else:
                save_deployment_fees(
                    db,
                    values={
                        "delivery_fee_cents": int(delivery_fee),
                        "processing_rate": rate,
                        "processing_fixed_fee_cents": int(processing_fixed),
                        "platform_fee_cents": int(platform_fee),
                    },
                    updated_by="streamlit",
                )
                st.success("Fee settings saved")
