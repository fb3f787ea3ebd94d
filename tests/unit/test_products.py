import pytest

from backend.checkout.errors import ProductNotFound, ValidationError
from backend.checkout.products import (
    GiftCardPurchase,
    Pack,
    PackRef,
    Plan,
    PlanRef,
    load_product,
    select_product,
)

def test_select_product_pack_and_plan():
    assert select_product(pack_id="p1") == PackRef(pack_id="p1")
    assert select_product(plan_id=" pl1 ") == PlanRef(plan_id="pl1")

def test_select_product_gift_card_amount_is_parsed():
    ref = select_product(gift_card_amount="5000", max_gift_card_amount=100_000)
    assert ref == GiftCardPurchase(amount=5000)
    assert ref.base_price == 5000

def test_select_product_missing():
    with pytest.raises(ValidationError):
        select_product()
    # Chaînes vides = absentes
    with pytest.raises(ValidationError):
        select_product(pack_id="  ", gift_card_amount="")

def test_select_product_ambiguous():
    with pytest.raises(ValidationError) as exc:
        select_product(pack_id="p1", plan_id="pl1")
    assert "ambigu" in exc.value.message

@pytest.mark.parametrize("amount", [0, -5, "abc", 10.5])
def test_select_product_invalid_gift_card_amount(amount):
    with pytest.raises(ValidationError):
        select_product(gift_card_amount=amount)

def test_select_product_gift_card_amount_too_high():
    with pytest.raises(ValidationError):
        select_product(gift_card_amount=200_000, max_gift_card_amount=100_000)

def test_load_product_pack():
    row = {"id": "p1", "tenant_id": "t1", "name": "10 cours", "price": 9000, "credits": 10, "expiration_days": 90, "active": True}
    calls = []

    def _get_pack(tenant_id, pack_id):
        calls.append((tenant_id, pack_id))
        return row

    pack = load_product("t1", PackRef("p1"), get_pack=_get_pack)
    assert isinstance(pack, Pack)
    assert pack.base_price == 9000
    assert pack.credits == 10
    assert calls == [("t1", "p1")]

def test_load_product_plan_recurring_and_one_time():
    monthly = load_product("t1", PlanRef("pl1"), get_plan=lambda t, p: {"id": p, "price": 2000, "interval": "month"})
    drop_in = load_product("t1", PlanRef("pl2"), get_plan=lambda t, p: {"id": p, "price": 2000, "interval": "one_time"})
    assert isinstance(monthly, Plan) and monthly.is_recurring
    assert not drop_in.is_recurring

def test_load_product_gift_card_needs_no_lookup():
    ref = GiftCardPurchase(amount=2500)
    assert load_product("t1", ref) is ref

def test_load_product_not_found_or_inactive():
    with pytest.raises(ProductNotFound):
        load_product("t1", PackRef("p1"), get_pack=lambda t, p: None)
    with pytest.raises(ProductNotFound):
        load_product("t1", PackRef("p1"), get_pack=lambda t, p: {"id": p, "price": 100, "active": False})

def test_load_product_invalid_interval():
    with pytest.raises(ValidationError):
        load_product("t1", PlanRef("pl1"), get_plan=lambda t, p: {"id": p, "price": 100, "interval": "daily"})
