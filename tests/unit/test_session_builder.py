from decimal import Decimal
import pytest

from backend.checkout.pricing import SUBSCRIPTION, compute_breakdown
from backend.checkout.products import Pack, Plan
from backend.checkout.session_builder import PROCESSING_FEE_LABEL, build_session_params, to_line_items

PACK = Pack(id="p1", tenant_id="t1", name="10 cours", base_price=5000)
MONTHLY = Plan(id="pl1", tenant_id="t1", name="Illimité", base_price=2000, interval="month")

def _params(product, breakdown):
    return build_session_params(
        product=product,
        breakdown=breakdown,
        metadata={"type": "x"},
        currency="usd",
        return_url="http://localhost:8000/studio/yoga-loft/return?session_id={CHECKOUT_SESSION_ID}",
        customer_email="test@example.com",
    )

def test_payment_session_params(fee_schedule):
    breakdown = compute_breakdown(5000, fee_schedule=fee_schedule, platform_fee_percent=Decimal("0.05"))
    params = _params(PACK, breakdown)

    assert params["ui_mode"] == "embedded"
    assert params["mode"] == "payment"
    assert params["customer_email"] == "test@example.com"
    assert params["payment_intent_data"] == {"metadata": {"type": "x"}, "application_fee_amount": 259}
    assert "subscription_data" not in params

    main, fee = params["line_items"]
    assert main["price_data"]["unit_amount"] == 5000
    assert main["price_data"]["product_data"]["name"] == "10 cours"
    assert fee["price_data"]["unit_amount"] == 181
    assert fee["price_data"]["product_data"]["name"] == PROCESSING_FEE_LABEL

def test_subscription_session_params(fee_schedule):
    breakdown = compute_breakdown(2000, fee_schedule=fee_schedule, platform_fee_percent=Decimal("0.03"), charge_mode=SUBSCRIPTION)
    params = _params(MONTHLY, breakdown)

    assert params["mode"] == "subscription"
    assert params["subscription_data"]["application_fee_percent"] == 3.0
    assert "payment_intent_data" not in params

    main, fee = params["line_items"]
    assert main["price_data"]["recurring"] == {"interval": "month", "interval_count": 1}
    assert "recurring" not in fee["price_data"]

def test_zero_platform_fee_is_omitted(fee_schedule):
    breakdown = compute_breakdown(5000, fee_schedule=fee_schedule, platform_fee_percent=Decimal("0"))
    assert "application_fee_amount" not in _params(PACK, breakdown)["payment_intent_data"]

    sub = compute_breakdown(2000, fee_schedule=fee_schedule, platform_fee_percent=Decimal("0"), charge_mode=SUBSCRIPTION)
    assert "application_fee_percent" not in _params(MONTHLY, sub)["subscription_data"]

def test_line_item_description_shows_deductions(fee_schedule):
    breakdown = compute_breakdown(5000, 500, 2000, fee_schedule=fee_schedule)
    main = to_line_items(PACK, breakdown, "usd")[0]
    assert main["price_data"]["unit_amount"] == 2500
    assert main["price_data"]["product_data"]["description"] == "Remise: -5.00 USD · Carte cadeau: -20.00 USD"

def test_no_fee_line_without_processor_fee():
    from backend.checkout.pricing import FeeSchedule
    breakdown = compute_breakdown(5000, fee_schedule=FeeSchedule(fixed_fee=0, percent_fee=Decimal("0")))
    assert len(to_line_items(PACK, breakdown, "usd")) == 1

def test_zero_amount_has_no_session(fee_schedule):
    breakdown = compute_breakdown(5000, 5000, fee_schedule=fee_schedule)
    with pytest.raises(ValueError):
        _params(PACK, breakdown)
