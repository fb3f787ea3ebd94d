"""
Sérialisation/désérialisation du sac de métadonnées du checkout.
Le même sac est passé à Stripe (session + paiement/abonnement) et à
l'exécution de commande, pour qu'une confirmation asynchrone puisse
rejouer l'exécution sans recalculer le devis.
"""
from typing import Any, Dict, Optional

from .pricing import PricingBreakdown
from .products import GiftCardPurchase, Pack, Plan

# Limite Stripe par valeur de métadonnée
MAX_VALUE_LENGTH = 500

PACK_PURCHASE = "pack_purchase"
MEMBERSHIP_PURCHASE = "membership_purchase"
GIFT_CARD_PURCHASE = "gift_card_purchase"

_INT_KEYS = (
    "gift_card_amount",
    "credit_applied",
    "discount_amount",
    "amount_to_pay",
    "processor_fee",
    "total_charge",
)

# module backend.checkout.metadata
def purchase_type(product) -> str:
    if isinstance(product, Pack):
        return PACK_PURCHASE
    if isinstance(product, Plan):
        return MEMBERSHIP_PURCHASE
    if isinstance(product, GiftCardPurchase):
        return GIFT_CARD_PURCHASE
    raise ValueError(f"Produit inconnu: {product!r}")

def make_metadata(
    *,
    tenant_id: str,
    user_id: Optional[str],
    product,
    breakdown: PricingBreakdown,
    coupon_id: Optional[str] = None,
    gift_card_id: Optional[str] = None,
    recipient: Optional[Dict[str, Any]] = None,
) -> Dict[str, str]:
    """
    Construit le sac de métadonnées (valeurs str, tronquées à 500 caractères).
    - Identifiants produit, coupon, carte cadeau utilisée, tenant, utilisateur.
    - Montants du devis (centimes) dont total_charge = montant brut facturé.
    """
    meta: Dict[str, Any] = {
        "type": purchase_type(product),
        "tenant_id": tenant_id,
        "user_id": user_id or "guest",
        "coupon_id": coupon_id or "",
        "used_gift_card_id": gift_card_id or "",
        "credit_applied": breakdown.credit_applied,
        "discount_amount": breakdown.discount_amount,
        "amount_to_pay": breakdown.amount_to_pay,
        "processor_fee": breakdown.processor_fee,
        "total_charge": breakdown.gross_amount,
    }
    if isinstance(product, Pack):
        meta["pack_id"] = product.id
    elif isinstance(product, Plan):
        meta["plan_id"] = product.id
    else:
        meta["gift_card_amount"] = product.amount
        recipient = recipient or {}
        meta["recipient_email"] = recipient.get("email") or ""
        meta["recipient_name"] = recipient.get("name") or ""
        meta["sender_name"] = recipient.get("sender_name") or ""
        meta["message"] = recipient.get("message") or ""
    return {k: str(v)[:MAX_VALUE_LENGTH] for k, v in meta.items()}

def parse_metadata(meta: Dict[str, Any] | None) -> Dict[str, Any]:
    """
    Inverse tolérant de make_metadata.
    - Chaînes vides -> None; montants -> int (0 si illisibles).
    - user_id 'guest' -> None.
    """
    parsed: Dict[str, Any] = {}
    for key, value in (meta or {}).items():
        if key in _INT_KEYS:
            try:
                parsed[key] = int(value)
            except (TypeError, ValueError):
                parsed[key] = 0
        else:
            parsed[key] = value if value not in ("", None) else None
    if parsed.get("user_id") == "guest":
        parsed["user_id"] = None
    return parsed
