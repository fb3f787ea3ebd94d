from datetime import datetime, timedelta, timezone
import pytest

from backend.checkout.coupons import FLAT, PERCENT, Coupon, discount_for, resolve_coupon
from backend.checkout.errors import ValidationError

NOW = datetime(2026, 5, 1, tzinfo=timezone.utc)

def _row(**overrides):
    row = {"id": "c1", "tenant_id": "t1", "code": "SAVE10", "type": "percent", "value": 10, "active": True}
    row.update(overrides)
    return row

def _resolve(raw_code, row, redemptions=0):
    seen = []

    def _find(tenant_id, code):
        seen.append(code)
        return row

    coupon = resolve_coupon("t1", raw_code, now=NOW, find_coupon=_find, count_redemptions=lambda cid: redemptions)
    return coupon, seen

def test_resolve_coupon_is_case_insensitive():
    coupon, seen = _resolve(" save10 ", _row())
    assert seen == ["SAVE10"]
    assert coupon.kind == PERCENT
    assert coupon.value == 10

def test_resolve_coupon_empty_code_skips_lookup():
    coupon, seen = _resolve("", _row())
    assert coupon is None
    assert seen == []

def test_resolve_coupon_unknown_inactive_expired_are_silent():
    assert _resolve("NOPE", None)[0] is None
    assert _resolve("SAVE10", _row(active=False))[0] is None
    expired = (NOW - timedelta(days=1)).isoformat()
    assert _resolve("SAVE10", _row(expires_at=expired))[0] is None
    future = (NOW + timedelta(days=1)).isoformat()
    assert _resolve("SAVE10", _row(expires_at=future))[0] is not None

def test_resolve_coupon_usage_limit():
    assert _resolve("SAVE10", _row(usage_limit=5), redemptions=5)[0] is None
    assert _resolve("SAVE10", _row(usage_limit=5), redemptions=4)[0] is not None

def test_resolve_coupon_amount_alias_and_unknown_type():
    coupon, _ = _resolve("FIVE", _row(type="amount", value=500))
    assert coupon.kind == FLAT
    assert _resolve("FIVE", _row(type="bogo"))[0] is None

def _coupon(kind, value):
    return Coupon(id="c1", tenant_id="t1", code="X", kind=kind, value=value)

def test_discount_for_percent_rounds_half_up():
    assert discount_for(_coupon(PERCENT, 10), 5000) == 500
    assert discount_for(_coupon(PERCENT, 15), 1999) == 300
    assert discount_for(_coupon(PERCENT, 10), 5) == 1

def test_discount_for_is_clamped_to_base_price():
    assert discount_for(_coupon(FLAT, 6000), 5000) == 5000
    assert discount_for(_coupon(PERCENT, 150), 5000) == 5000
    assert discount_for(None, 5000) == 0

def test_resolve_coupon_usage_limit_with_unknown_count_gives_no_discount():
    assert _resolve("SAVE10", _row(usage_limit=5), redemptions=None)[0] is None
    # Sans limite d'usage le décompte n'est pas consulté
    assert _resolve("SAVE10", _row(), redemptions=None)[0] is not None

def test_resolve_coupon_with_supabase_down_never_applies_limited_coupon(monkeypatch):
    def _down():
        raise RuntimeError("SUPABASE_SERVICE_KEY manquant")

    monkeypatch.setattr("backend.infra.supabase_client.get_service_supabase", _down)
    coupon = resolve_coupon("t1", "SAVE10", now=NOW, find_coupon=lambda tenant_id, code: _row(usage_limit=1))
    assert coupon is None

def test_resolve_coupon_strict_policy_raises_with_reason(monkeypatch):
    monkeypatch.setattr("backend.checkout.coupons.SILENT_PROMOTION_POLICY", False)
    with pytest.raises(ValidationError) as exc:
        _resolve("NOPE", None)
    assert "unknown" in exc.value.message
    with pytest.raises(ValidationError) as exc:
        _resolve("SAVE10", _row(usage_limit=5), redemptions=5)
    assert "usage_limit" in exc.value.message
    assert _resolve("SAVE10", _row())[0] is not None
    assert _resolve("", _row())[0] is None
