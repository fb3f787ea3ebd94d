"""
Exécution des commandes (écritures durables) via le client Supabase service-role.
- Appelée une seule fois par commande, idempotente sur order_ref.
- Le débit des cartes cadeaux a lieu ici, jamais au moment du devis.
Les erreurs d'écriture sont propagées à l'appelant.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import logging
import secrets
from uuid import uuid4

import backend.infra.supabase_client as supabase_client
from .metadata import parse_metadata

logger = logging.getLogger(__name__)

# Relectures du solde en cas de débit concurrent
MAX_REDEEM_ATTEMPTS = 3
_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

# module backend.checkout.fulfillment
def _db():
    return supabase_client.get_service_supabase()

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def _rows(res) -> list:
    rows = getattr(res, "data", None) or []
    return rows if isinstance(rows, list) else [rows]

def _exists(table: str, column: str, value: str) -> bool:
    res = _db().table(table).select("id").eq(column, value).limit(1).execute()
    return bool(_rows(res))

def _member_id(tenant_id: str, user_id: Optional[str]) -> Optional[str]:
    if not user_id:
        return None
    res = (
        _db()
        .table("tenant_members")
        .select("id")
        .eq("tenant_id", tenant_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )
    rows = _rows(res)
    return rows[0].get("id") if rows else None

def _record_coupon_redemption(meta: Dict[str, Any], order_ref: str) -> None:
    if not meta.get("coupon_id") or not meta.get("user_id"):
        return
    _db().table("coupon_redemptions").insert({
        "id": str(uuid4()),
        "tenant_id": meta["tenant_id"],
        "coupon_id": meta["coupon_id"],
        "user_id": meta["user_id"],
        "order_id": order_ref,
        "redeemed_at": _now(),
    }).execute()

def generate_gift_card_code() -> str:
    part = lambda: "".join(secrets.choice(_CODE_ALPHABET) for _ in range(4))
    return f"GIFT-{part()}-{part()}"

def fulfill_pack_purchase(metadata: Dict[str, Any], order_ref: str, amount_paid: int) -> Optional[Dict[str, Any]]:
    """
    Crédite un pack acheté (table 'purchased_packs') et trace l'usage du coupon.
    - No-op si order_ref déjà exécuté ou pack introuvable.
    """
    meta = parse_metadata(metadata)
    tenant_id, pack_id = meta.get("tenant_id"), meta.get("pack_id")
    if not tenant_id or not pack_id:
        return None
    if _exists("purchased_packs", "stripe_payment_id", order_ref):
        logger.info("checkout.fulfillment.fulfill_pack_purchase already done order_ref=%s", order_ref)
        return None

    res = (
        _db()
        .table("class_pack_definitions")
        .select("*")
        .eq("tenant_id", tenant_id)
        .eq("id", pack_id)
        .limit(1)
        .execute()
    )
    rows = _rows(res)
    if not rows:
        logger.warning("checkout.fulfillment.fulfill_pack_purchase pack not found pack_id=%s", pack_id)
        return None
    pack = rows[0]

    expires_at = None
    if pack.get("expiration_days"):
        expires_at = (datetime.now(timezone.utc) + timedelta(days=int(pack["expiration_days"]))).isoformat()
    credits = int(pack.get("credits") or 0)
    row = {
        "id": str(uuid4()),
        "tenant_id": tenant_id,
        "member_id": _member_id(tenant_id, meta.get("user_id")),
        "pack_definition_id": pack_id,
        "initial_credits": credits,
        "remaining_credits": credits,
        "price": amount_paid,
        "expires_at": expires_at,
        "stripe_payment_id": order_ref,
        "created_at": _now(),
    }
    _db().table("purchased_packs").insert(row).execute()
    _record_coupon_redemption(meta, order_ref)
    logger.info("checkout.fulfillment.fulfill_pack_purchase tenant_id=%s pack_id=%s order_ref=%s", tenant_id, pack_id, order_ref)
    return row

def fulfill_membership_purchase(metadata: Dict[str, Any], order_ref: str) -> Optional[Dict[str, Any]]:
    """Active un abonnement (table 'subscriptions'); no-op si order_ref déjà exécuté."""
    meta = parse_metadata(metadata)
    tenant_id, plan_id = meta.get("tenant_id"), meta.get("plan_id")
    if not tenant_id or not plan_id:
        return None
    if _exists("subscriptions", "stripe_subscription_id", order_ref):
        logger.info("checkout.fulfillment.fulfill_membership_purchase already done order_ref=%s", order_ref)
        return None
    row = {
        "id": str(uuid4()),
        "tenant_id": tenant_id,
        "user_id": meta.get("user_id"),
        "member_id": _member_id(tenant_id, meta.get("user_id")),
        "plan_id": plan_id,
        "status": "active",
        "stripe_subscription_id": order_ref,
        "created_at": _now(),
    }
    _db().table("subscriptions").insert(row).execute()
    _record_coupon_redemption(meta, order_ref)
    logger.info("checkout.fulfillment.fulfill_membership_purchase tenant_id=%s plan_id=%s order_ref=%s", tenant_id, plan_id, order_ref)
    return row

def fulfill_gift_card_purchase(metadata: Dict[str, Any], order_ref: str, amount: int) -> Optional[Dict[str, Any]]:
    """
    Émet une carte cadeau de valeur 'amount' (code GIFT-XXXX-XXXX) et sa transaction d'achat.
    - No-op si amount <= 0 ou order_ref déjà exécuté.
    """
    meta = parse_metadata(metadata)
    tenant_id = meta.get("tenant_id")
    if not tenant_id or amount <= 0:
        return None
    if _exists("gift_cards", "stripe_payment_id", order_ref):
        logger.info("checkout.fulfillment.fulfill_gift_card_purchase already done order_ref=%s", order_ref)
        return None

    card = {
        "id": str(uuid4()),
        "tenant_id": tenant_id,
        "code": generate_gift_card_code(),
        "initial_value": amount,
        "current_balance": amount,
        "buyer_member_id": _member_id(tenant_id, meta.get("user_id")),
        "recipient_email": meta.get("recipient_email"),
        "notes": meta.get("message"),
        "status": "active",
        "stripe_payment_id": order_ref,
        "created_at": _now(),
    }
    _db().table("gift_cards").insert(card).execute()
    _db().table("gift_card_transactions").insert({
        "id": str(uuid4()),
        "gift_card_id": card["id"],
        "amount": amount,
        "type": "purchase",
        "reference_id": order_ref,
        "created_at": _now(),
    }).execute()
    _record_coupon_redemption(meta, order_ref)
    logger.info("checkout.fulfillment.fulfill_gift_card_purchase tenant_id=%s amount=%s order_ref=%s", tenant_id, amount, order_ref)
    return card

def redeem_gift_card(card_id: str, amount: int, order_ref: str) -> int:
    """
    Débite une carte cadeau et retourne le montant réellement débité.
    - Borné au solde courant (jamais négatif); sur-débit -> no-op journalisé.
    - Mise à jour conditionnelle sur le solde lu (compare-and-set), relue en cas de conflit.
    - Idempotent: une transaction 'redemption' existante pour order_ref -> 0.
    """
    if amount <= 0 or not card_id:
        return 0
    existing = (
        _db()
        .table("gift_card_transactions")
        .select("id")
        .eq("gift_card_id", card_id)
        .eq("reference_id", order_ref)
        .eq("type", "redemption")
        .limit(1)
        .execute()
    )
    if _rows(existing):
        logger.info("checkout.fulfillment.redeem_gift_card already done order_ref=%s", order_ref)
        return 0

    for _ in range(MAX_REDEEM_ATTEMPTS):
        rows = _rows(_db().table("gift_cards").select("*").eq("id", card_id).limit(1).execute())
        if not rows:
            logger.warning("checkout.fulfillment.redeem_gift_card card not found card_id=%s", card_id)
            return 0
        balance = int(rows[0].get("current_balance") or 0)
        redeemed = min(amount, balance)
        if redeemed <= 0:
            logger.warning("checkout.fulfillment.redeem_gift_card over-redemption ignored card_id=%s order_ref=%s", card_id, order_ref)
            return 0
        if redeemed < amount:
            logger.warning("checkout.fulfillment.redeem_gift_card clamped card_id=%s requested=%s redeemed=%s", card_id, amount, redeemed)

        new_balance = balance - redeemed
        updated = (
            _db()
            .table("gift_cards")
            .update({
                "current_balance": new_balance,
                "status": "redeemed" if new_balance == 0 else "active",
                "updated_at": _now(),
            })
            .eq("id", card_id)
            .eq("current_balance", balance)
            .execute()
        )
        if _rows(updated):
            _db().table("gift_card_transactions").insert({
                "id": str(uuid4()),
                "gift_card_id": card_id,
                "amount": -redeemed,
                "type": "redemption",
                "reference_id": order_ref,
                "created_at": _now(),
            }).execute()
            return redeemed

    logger.warning("checkout.fulfillment.redeem_gift_card contention card_id=%s order_ref=%s", card_id, order_ref)
    return 0
