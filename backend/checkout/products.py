"""
Produits vendables au checkout (union étiquetée, une seule variante active):
- PackRef -> Pack (pack de crédits de cours)
- PlanRef -> Plan (abonnement, ponctuel ou récurrent)
- GiftCardPurchase (achat direct d'une carte cadeau, non stocké)
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union
import logging

from . import repository
from .errors import ProductNotFound, ValidationError
from .money import parse_cents

logger = logging.getLogger(__name__)

INTERVALS = ("one_time", "week", "month", "year")
RECURRING_INTERVALS = ("week", "month", "year")

@dataclass(frozen=True)
class PackRef:
    pack_id: str

@dataclass(frozen=True)
class PlanRef:
    plan_id: str

@dataclass(frozen=True)
class GiftCardPurchase:
    amount: int

    @property
    def base_price(self) -> int:
        return self.amount

    @property
    def name(self) -> str:
        return "Carte cadeau"

@dataclass(frozen=True)
class Pack:
    id: str
    tenant_id: str
    name: str
    base_price: int
    credits: int = 0
    expiration_days: Optional[int] = None
    active: bool = True

@dataclass(frozen=True)
class Plan:
    id: str
    tenant_id: str
    name: str
    base_price: int
    interval: str = "month"
    active: bool = True

    @property
    def is_recurring(self) -> bool:
        return self.interval in RECURRING_INTERVALS

ProductRef = Union[PackRef, PlanRef, GiftCardPurchase]
Product = Union[Pack, Plan, GiftCardPurchase]

def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True

def select_product(
    *,
    pack_id: Optional[str] = None,
    plan_id: Optional[str] = None,
    gift_card_amount: Any = None,
    max_gift_card_amount: Optional[int] = None,
) -> ProductRef:
    """
    Sélectionne l'unique produit de la requête.
    - Aucun ou plusieurs produits -> ValidationError.
    - gift_card_amount mal formé ou hors bornes -> ValidationError.
    """
    selected = [name for name, value in (("pack_id", pack_id), ("plan_id", plan_id), ("gift_card_amount", gift_card_amount)) if _present(value)]
    if not selected:
        raise ValidationError("Produit manquant (pack_id, plan_id ou gift_card_amount)")
    if len(selected) > 1:
        raise ValidationError(f"Produit ambigu: {', '.join(selected)}")

    if _present(pack_id):
        return PackRef(pack_id=str(pack_id).strip())
    if _present(plan_id):
        return PlanRef(plan_id=str(plan_id).strip())

    amount = parse_cents(gift_card_amount)
    if max_gift_card_amount is not None and amount > max_gift_card_amount:
        raise ValidationError("Montant de carte cadeau trop élevé")
    return GiftCardPurchase(amount=amount)

def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default

def pack_from_row(row: Dict[str, Any]) -> Pack:
    expiration = row.get("expiration_days")
    return Pack(
        id=str(row.get("id") or ""),
        tenant_id=str(row.get("tenant_id") or ""),
        name=row.get("name") or "Pack",
        base_price=max(0, _int(row.get("price"))),
        credits=_int(row.get("credits")),
        expiration_days=_int(expiration) if expiration is not None else None,
        active=bool(row.get("active", True)),
    )

def plan_from_row(row: Dict[str, Any]) -> Plan:
    interval = str(row.get("interval") or "month")
    if interval not in INTERVALS:
        raise ValidationError(f"Intervalle de plan invalide: {interval}")
    return Plan(
        id=str(row.get("id") or ""),
        tenant_id=str(row.get("tenant_id") or ""),
        name=row.get("name") or "Abonnement",
        base_price=max(0, _int(row.get("price"))),
        interval=interval,
        active=bool(row.get("active", True)),
    )

def load_product(
    tenant_id: str,
    ref: ProductRef,
    *,
    get_pack: Optional[Callable[[str, str], Optional[Dict[str, Any]]]] = None,
    get_plan: Optional[Callable[[str, str], Optional[Dict[str, Any]]]] = None,
) -> Product:
    """Charge l'entité du tenant; introuvable ou inactive -> ProductNotFound."""
    if isinstance(ref, GiftCardPurchase):
        return ref
    if isinstance(ref, PackRef):
        row = (get_pack or repository.get_pack)(tenant_id, ref.pack_id)
        product = pack_from_row(row) if row else None
    else:
        row = (get_plan or repository.get_plan)(tenant_id, ref.plan_id)
        product = plan_from_row(row) if row else None
    if product is None or not product.active:
        raise ProductNotFound("Produit introuvable")
    return product
