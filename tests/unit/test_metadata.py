from decimal import Decimal

from backend.checkout.metadata import (
    GIFT_CARD_PURCHASE,
    MAX_VALUE_LENGTH,
    PACK_PURCHASE,
    make_metadata,
    parse_metadata,
)
from backend.checkout.pricing import compute_breakdown
from backend.checkout.products import GiftCardPurchase, Pack

PACK = Pack(id="p1", tenant_id="t1", name="10 cours", base_price=5000)

def test_make_metadata_pack(fee_schedule):
    breakdown = compute_breakdown(5000, 500, 2000, fee_schedule=fee_schedule, platform_fee_percent=Decimal("0.05"))
    meta = make_metadata(tenant_id="t1", user_id="u1", product=PACK, breakdown=breakdown, coupon_id="c1", gift_card_id="g1")

    assert meta["type"] == PACK_PURCHASE
    assert meta["pack_id"] == "p1"
    assert meta["coupon_id"] == "c1"
    assert meta["used_gift_card_id"] == "g1"
    assert meta["discount_amount"] == "500"
    assert meta["credit_applied"] == "2000"
    assert meta["amount_to_pay"] == "2500"
    assert meta["total_charge"] == str(breakdown.gross_amount)
    assert all(isinstance(v, str) for v in meta.values())

def test_make_metadata_gift_card_recipient_is_truncated(fee_schedule):
    breakdown = compute_breakdown(5000, fee_schedule=fee_schedule)
    recipient = {"email": "ami@example.com", "name": "Ami", "message": "x" * 800}
    meta = make_metadata(tenant_id="t1", user_id=None, product=GiftCardPurchase(amount=5000), breakdown=breakdown, recipient=recipient)

    assert meta["type"] == GIFT_CARD_PURCHASE
    assert meta["user_id"] == "guest"
    assert meta["gift_card_amount"] == "5000"
    assert meta["recipient_email"] == "ami@example.com"
    assert meta["sender_name"] == ""
    assert len(meta["message"]) == MAX_VALUE_LENGTH

def test_parse_metadata_is_tolerant():
    parsed = parse_metadata({
        "type": "pack_purchase",
        "user_id": "guest",
        "coupon_id": "",
        "amount_to_pay": "2500",
        "credit_applied": "oops",
    })
    assert parsed["user_id"] is None
    assert parsed["coupon_id"] is None
    assert parsed["amount_to_pay"] == 2500
    assert parsed["credit_applied"] == 0
    assert parse_metadata(None) == {}
