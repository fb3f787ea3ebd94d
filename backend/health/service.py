"""Sonde Supabase: configuration présente et requête minimale sur 'tenants'."""
from typing import Any, Dict
import logging
import backend.infra.supabase_client as supabase_client
from backend.config import SUPABASE_URL, SUPABASE_SERVICE_KEY

logger = logging.getLogger(__name__)

def health_supabase_info() -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "url_set": bool(SUPABASE_URL),
        "service_key_set": bool(SUPABASE_SERVICE_KEY),
        "connect_ok": False,
    }
    try:
        supabase_client.get_service_supabase().table("tenants").select("id").limit(1).execute()
        info["connect_ok"] = True
    except Exception as e:
        logger.warning("health.service.health_supabase_info failed: %s", e)
        info["error"] = type(e).__name__
    return info
