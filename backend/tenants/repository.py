"""
Accès aux studios (tenants): compte marchand connecté, palier, devise, barème de frais.
"""
from typing import Any, Dict, Optional
import logging
import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module backend.tenants.repository
def get_tenant_by_slug(slug: str) -> Optional[Dict[str, Any]]:
    """Retourne le tenant (table 'tenants') par slug, ou None si introuvable/erreur."""
    slug = (slug or "").strip().lower()
    if not slug:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("tenants")
            .select("id, slug, name, stripe_account_id, tier, currency, processor_fixed_fee, processor_percent_fee")
            .eq("slug", slug)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("tenants.repository.get_tenant_by_slug failed slug=%s", slug)
        return None
