"""
Lecture du solde d'une carte cadeau (valeur stockée).
Ne modifie jamais le registre: le débit a lieu à l'exécution de la commande
(fulfillment.redeem_gift_card), jamais au moment du devis.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
import logging

from . import repository
from .coupons import normalize_code, parse_timestamp

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class GiftCardCredit:
    gift_card_id: str
    code: str
    balance: int
    credit_applied: int

def lookup_gift_card(
    tenant_id: str,
    raw_code: Optional[str],
    *,
    now: Optional[datetime] = None,
    find_gift_card: Optional[Callable[[str, str], Optional[Dict[str, Any]]]] = None,
) -> Optional[Dict[str, Any]]:
    """Carte active, non expirée et de solde positif; None sinon (pas d'erreur)."""
    code = normalize_code(raw_code)
    if not code:
        return None
    find_gift_card = find_gift_card or repository.find_active_gift_card
    card = find_gift_card(tenant_id, code)
    if not card or str(card.get("status") or "active") != "active":
        return None
    expiry = parse_timestamp(card.get("expiry_date"))
    if expiry and expiry < (now or datetime.now(timezone.utc)):
        return None
    try:
        balance = int(card.get("current_balance") or 0)
    except (TypeError, ValueError):
        return None
    if balance <= 0:
        return None
    return {**card, "code": code, "current_balance": balance}

def resolve_credit(
    tenant_id: str,
    raw_code: Optional[str],
    amount_remaining: int,
    **lookup_kwargs,
) -> Optional[GiftCardCredit]:
    """
    Crédit applicable = min(solde, reste à payer).
    Code absent ou carte invalide -> None (équivaut à un crédit nul).
    """
    card = lookup_gift_card(tenant_id, raw_code, **lookup_kwargs)
    if not card:
        if raw_code:
            logger.info("checkout.gift_cards.resolve_credit no credit tenant_id=%s", tenant_id)
        return None
    balance = card["current_balance"]
    return GiftCardCredit(
        gift_card_id=str(card.get("id") or ""),
        code=card["code"],
        balance=balance,
        credit_applied=max(0, min(balance, amount_remaining)),
    )
