"""
Notifications de confirmation (hors chemin critique).
Déposées dans la table 'email_outbox' consommée par le service d'envoi.
Exécutées en tâche de fond: une erreur est journalisée, jamais propagée.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging
from uuid import uuid4

import backend.infra.supabase_client as supabase_client
from .metadata import GIFT_CARD_PURCHASE, parse_metadata
from .money import format_cents

logger = logging.getLogger(__name__)

# module backend.checkout.notifications
def _enqueue(tenant_id: str, to: str, template: str, data: Dict[str, Any]) -> None:
    supabase_client.get_service_supabase().table("email_outbox").insert({
        "id": str(uuid4()),
        "tenant_id": tenant_id,
        "to_email": to,
        "template": template,
        "data": data,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }).execute()

def send_purchase_confirmations(
    metadata: Dict[str, Any],
    order_ref: str,
    buyer_email: Optional[str],
    currency: str = "usd",
    gift_card_code: Optional[str] = None,
) -> int:
    """
    Reçu acheteur + (achat de carte cadeau) message au destinataire.
    Retourne le nombre de messages déposés.
    """
    meta = parse_metadata(metadata)
    tenant_id = meta.get("tenant_id") or ""
    sent = 0
    try:
        if buyer_email:
            _enqueue(tenant_id, buyer_email, "purchase_receipt", {
                "order_ref": order_ref,
                "type": meta.get("type"),
                "amount": format_cents(meta.get("total_charge") or 0, currency),
            })
            sent += 1
        if meta.get("type") == GIFT_CARD_PURCHASE and meta.get("recipient_email"):
            _enqueue(tenant_id, meta["recipient_email"], "gift_card_received", {
                "order_ref": order_ref,
                "amount": format_cents(meta.get("gift_card_amount") or 0, currency),
                "code": gift_card_code,
                "sender_name": meta.get("sender_name") or "Un ami",
                "message": meta.get("message"),
            })
            sent += 1
    except Exception:
        logger.exception("checkout.notifications.send_purchase_confirmations failed order_ref=%s", order_ref)
    return sent
