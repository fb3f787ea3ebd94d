import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field

from backend.utils.security import require_user
from backend.utils.rate_limit import optional_rate_limit
from backend.tenants import repository as tenants_repo
from backend.checkout import coupons, gift_cards
from backend.checkout import service as checkout_service
from backend.checkout.errors import CheckoutError, TenantNotFound

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/studios/{slug}", tags=["Checkout API"])

class Recipient(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, max_length=120)
    sender_name: Optional[str] = Field(default=None, max_length=120)
    message: Optional[str] = Field(default=None, max_length=400)

class CheckoutRequest(BaseModel):
    pack_id: Optional[str] = None
    plan_id: Optional[str] = None
    # Validé par le service (ValidationError), pas par pydantic
    gift_card_amount: Any = None
    coupon_code: Optional[str] = Field(default=None, max_length=64)
    gift_card_code: Optional[str] = Field(default=None, max_length=64)
    recipient: Optional[Recipient] = None

def get_tenant(slug: str) -> Dict[str, Any]:
    tenant = tenants_repo.get_tenant_by_slug(slug)
    if not tenant:
        raise TenantNotFound("Studio introuvable")
    return tenant

# module backend.checkout.views
@router.post("/checkout/session", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_checkout_session(
    body: CheckoutRequest,
    background_tasks: BackgroundTasks,
    tenant: Dict[str, Any] = Depends(get_tenant),
    user: Dict[str, Any] = Depends(require_user),
):
    """
    Crée le checkout d'un produit (pack, plan ou carte cadeau) pour l'utilisateur authentifié.
    - Entrée JSON: { "pack_id" | "plan_id" | "gift_card_amount", "coupon_code"?, "gift_card_code"?, "recipient"? }
    - Sécurité: require_user + rate limit (10 req / 60s); impersonation refusée
    - Réponses:
      - montant nul: {"complete": true, "return_url", "order_ref"} (aucun appel Stripe)
      - sinon: {"session_id", "client_secret"} (checkout embarqué Stripe)
    - Erreurs: 400 produit absent/ambigu ou paiements non activés, 403 impersonation,
      404 studio/produit introuvable, 502 échec Stripe, 500 générique sinon
    """
    try:
        return checkout_service.process_checkout(
            tenant=tenant,
            user=user,
            pack_id=body.pack_id,
            plan_id=body.plan_id,
            gift_card_amount=body.gift_card_amount,
            coupon_code=body.coupon_code,
            gift_card_code=body.gift_card_code,
            recipient=body.recipient.model_dump() if body.recipient else None,
            schedule=background_tasks.add_task,
        )
    except CheckoutError:
        raise
    except Exception:
        logger.exception("Erreur create_checkout_session tenant_id=%s", tenant.get("id"))
        raise HTTPException(status_code=500, detail="Erreur interne")

@router.get("/coupons/{code}/validate", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def validate_coupon(code: str, tenant: Dict[str, Any] = Depends(get_tenant)) -> Dict[str, Any]:
    """
    Validation publique d'un code promo pour l'affichage du checkout.
    Un code invalide répond {"valid": false} (jamais d'erreur, même politique que le checkout).
    """
    coupon = coupons.resolve_coupon(str(tenant["id"]), code)
    if not coupon:
        return {"valid": False}
    return {"valid": True, "code": coupon.code, "type": coupon.kind, "value": coupon.value}

@router.get("/gift-cards/{code}/validate", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def validate_gift_card(code: str, tenant: Dict[str, Any] = Depends(get_tenant)) -> Dict[str, Any]:
    """Solde disponible d'une carte cadeau; carte invalide -> {"valid": false}."""
    card = gift_cards.lookup_gift_card(str(tenant["id"]), code)
    if not card:
        return {"valid": False}
    return {"valid": True, "code": card["code"], "balance": card["current_balance"]}
