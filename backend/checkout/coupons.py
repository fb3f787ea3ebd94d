"""
Résolution d'un code promo (un seul coupon par commande).

Politique silencieuse (SILENT_PROMOTION_POLICY): un code inconnu, inactif,
expiré ou épuisé ne bloque jamais le checkout, il se résout en « pas de remise ».
Désactivée, chaque refus lève une ValidationError qui nomme la raison.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Optional
import logging

from . import repository
from .errors import ValidationError
from .money import round_half_up

logger = logging.getLogger(__name__)

SILENT_PROMOTION_POLICY = True

PERCENT = "percent"
FLAT = "flat"
# 'amount' est l'ancien nom du type forfaitaire en base
_KIND_ALIASES = {"percent": PERCENT, "flat": FLAT, "amount": FLAT}

@dataclass(frozen=True)
class Coupon:
    id: str
    tenant_id: str
    code: str
    kind: str
    value: int
    usage_limit: Optional[int] = None
    active: bool = True
    expires_at: Optional[datetime] = None

def normalize_code(raw: Optional[str]) -> str:
    return (raw or "").strip().upper()

def parse_timestamp(value: Any) -> Optional[datetime]:
    """Lit un horodatage Supabase (ISO 8601) ou epoch (secondes); None si illisible."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=timezone.utc)
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None

def coupon_from_row(row: Dict[str, Any]) -> Optional[Coupon]:
    kind = _KIND_ALIASES.get(str(row.get("type") or row.get("kind") or "").lower())
    if not kind:
        return None
    try:
        value = int(row.get("value") or 0)
    except (TypeError, ValueError):
        return None
    usage_limit = row.get("usage_limit")
    return Coupon(
        id=str(row.get("id") or ""),
        tenant_id=str(row.get("tenant_id") or ""),
        code=normalize_code(row.get("code")),
        kind=kind,
        value=max(value, 0),
        usage_limit=int(usage_limit) if usage_limit is not None else None,
        active=bool(row.get("active", True)),
        expires_at=parse_timestamp(row.get("expires_at")),
    )

def _no_discount(tenant_id: str, reason: str) -> None:
    """Code refusé: None sous la politique silencieuse, ValidationError sinon."""
    logger.info("checkout.coupons.resolve_coupon no discount tenant_id=%s reason=%s", tenant_id, reason)
    if not SILENT_PROMOTION_POLICY:
        raise ValidationError(f"Code promo invalide ({reason})")
    return None

def resolve_coupon(
    tenant_id: str,
    raw_code: Optional[str],
    *,
    now: Optional[datetime] = None,
    find_coupon: Callable[[str, str], Optional[Dict[str, Any]]] = None,
    count_redemptions: Callable[[str], Optional[int]] = None,
) -> Optional[Coupon]:
    """
    Résout un code promo pour le tenant.
    - Comparaison insensible à la casse (code stocké en majuscules).
    - Inconnu, inactif, expiré ou limite d'usage atteinte -> None (pas d'erreur).
    - Limite d'usage dont le décompte est indisponible -> None (jamais de remise à l'aveugle).
    """
    code = normalize_code(raw_code)
    if not code:
        return None
    find_coupon = find_coupon or repository.find_active_coupon
    count_redemptions = count_redemptions or repository.count_coupon_redemptions

    row = find_coupon(tenant_id, code)
    coupon = coupon_from_row(row) if row else None
    if not coupon or not coupon.active:
        return _no_discount(tenant_id, "unknown")

    now = now or datetime.now(timezone.utc)
    if coupon.expires_at and coupon.expires_at < now:
        return _no_discount(tenant_id, "expired")

    if coupon.usage_limit is not None:
        used = count_redemptions(coupon.id)
        if used is None:
            return _no_discount(tenant_id, "usage_unknown")
        if used >= coupon.usage_limit:
            return _no_discount(tenant_id, "usage_limit")
    return coupon

def discount_for(coupon: Optional[Coupon], base_price: int) -> int:
    """
    Montant de la remise, toujours dans [0, base_price].
    - percent: round_half_up(base_price * value / 100)
    - flat: min(value, base_price)
    """
    if coupon is None or base_price <= 0:
        return 0
    if coupon.kind == PERCENT:
        discount = round_half_up(Decimal(base_price * coupon.value) / 100)
    else:
        discount = coupon.value
    return max(0, min(discount, base_price))
