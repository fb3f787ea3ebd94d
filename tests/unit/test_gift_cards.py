from datetime import datetime, timedelta, timezone

from backend.checkout.gift_cards import lookup_gift_card, resolve_credit

NOW = datetime(2026, 5, 1, tzinfo=timezone.utc)

def _card(**overrides):
    card = {"id": "g1", "tenant_id": "t1", "code": "GIFT-AAAA-BBBB", "current_balance": 3000, "status": "active"}
    card.update(overrides)
    return card

def _lookup(card, code="gift-aaaa-bbbb"):
    return lookup_gift_card("t1", code, now=NOW, find_gift_card=lambda t, c: card)

def test_lookup_gift_card_normalizes():
    card = _lookup(_card(current_balance="2500"))
    assert card["code"] == "GIFT-AAAA-BBBB"
    assert card["current_balance"] == 2500

def test_lookup_gift_card_rejects_unusable_cards():
    assert _lookup(None) is None
    assert _lookup(_card(status="redeemed")) is None
    assert _lookup(_card(current_balance=0)) is None
    assert _lookup(_card(expiry_date=(NOW - timedelta(days=1)).isoformat())) is None
    assert _lookup(_card(), code="  ") is None

def test_resolve_credit_is_min_of_balance_and_remaining():
    partial = resolve_credit("t1", "GIFT-AAAA-BBBB", 4500, now=NOW, find_gift_card=lambda t, c: _card(current_balance=3000))
    assert partial.credit_applied == 3000
    assert partial.balance == 3000

    covering = resolve_credit("t1", "GIFT-AAAA-BBBB", 4500, now=NOW, find_gift_card=lambda t, c: _card(current_balance=10000))
    assert covering.credit_applied == 4500
    assert covering.gift_card_id == "g1"

def test_resolve_credit_nothing_left_to_pay():
    credit = resolve_credit("t1", "GIFT-AAAA-BBBB", 0, now=NOW, find_gift_card=lambda t, c: _card())
    assert credit.credit_applied == 0

def test_resolve_credit_invalid_code():
    assert resolve_credit("t1", None, 4500) is None
    assert resolve_credit("t1", "NOPE", 4500, now=NOW, find_gift_card=lambda t, c: None) is None
