"""
Accès aux données (lecture) pour la feature 'checkout'.
- Packs, plans, coupons, cartes cadeaux: lectures scoppées par tenant.
- Les erreurs Supabase sont journalisées et se traduisent par un résultat vide.
"""
from typing import Any, Dict, Optional
import logging
import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module backend.checkout.repository
def _first(res) -> Optional[Dict[str, Any]]:
    rows = getattr(res, "data", None) or []
    return rows[0] if isinstance(rows, list) and rows else None

def get_pack(tenant_id: str, pack_id: str) -> Optional[Dict[str, Any]]:
    """Définition de pack (table 'class_pack_definitions') du tenant, ou None."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("class_pack_definitions")
            .select("*")
            .eq("tenant_id", tenant_id)
            .eq("id", pack_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("checkout.repository.get_pack failed tenant_id=%s pack_id=%s", tenant_id, pack_id)
        return None

def get_plan(tenant_id: str, plan_id: str) -> Optional[Dict[str, Any]]:
    """Plan d'abonnement (table 'membership_plans') du tenant, ou None."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("membership_plans")
            .select("*")
            .eq("tenant_id", tenant_id)
            .eq("id", plan_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("checkout.repository.get_plan failed tenant_id=%s plan_id=%s", tenant_id, plan_id)
        return None

def find_active_coupon(tenant_id: str, code: str) -> Optional[Dict[str, Any]]:
    """Coupon actif par code (déjà normalisé en majuscules)."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("coupons")
            .select("*")
            .eq("tenant_id", tenant_id)
            .eq("code", code)
            .eq("active", True)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("checkout.repository.find_active_coupon failed tenant_id=%s", tenant_id)
        return None

def count_coupon_redemptions(coupon_id: str) -> Optional[int]:
    """Nombre de rédemptions du coupon; None si le décompte est indisponible."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("coupon_redemptions")
            .select("id", count="exact")
            .eq("coupon_id", coupon_id)
            .execute()
        )
        count = getattr(res, "count", None)
        return int(count) if count is not None else None
    except Exception:
        logger.exception("checkout.repository.count_coupon_redemptions failed coupon_id=%s", coupon_id)
        return None

def find_active_gift_card(tenant_id: str, code: str) -> Optional[Dict[str, Any]]:
    """Carte cadeau active par code (déjà normalisé en majuscules)."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("gift_cards")
            .select("*")
            .eq("tenant_id", tenant_id)
            .eq("code", code)
            .eq("status", "active")
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception:
        logger.exception("checkout.repository.find_active_gift_card failed tenant_id=%s", tenant_id)
        return None
