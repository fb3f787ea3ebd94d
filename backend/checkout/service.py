"""
Cas d'usage 'checkout': orchestre produits, coupon, carte cadeau, calcul, Stripe et exécution.

Déroulé (séquentiel, sans état partagé):
  1) refus préalables: impersonation, produit absent/ambigu, paiements non activés
  2) devis: produit -> remise -> crédit carte cadeau -> PricingBreakdown
  3a) reste à payer nul: exécution immédiate, référence de commande synthétique
  3b) sinon: une session Stripe Checkout sur le compte connecté, sans relance
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Optional
import logging
from uuid import uuid4

from backend.config import BASE_URL, CHECKOUT_RETURN_PATH, DEFAULT_CURRENCY, GIFT_CARD_MAX_AMOUNT, MIN_CHARGE_CENTS
from . import coupons
from . import fulfillment
from . import gift_cards
from . import notifications
from . import products
from . import stripe_client
from . import tiers
from .errors import ImpersonationForbidden, PaymentsNotEnabled, ValidationError
from .metadata import make_metadata
from .pricing import FeeSchedule, PricingBreakdown, compute_breakdown, select_charge_mode
from .session_builder import build_session_params

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Quote:
    product: Any
    coupon: Optional[coupons.Coupon]
    credit: Optional[gift_cards.GiftCardCredit]
    breakdown: PricingBreakdown

    @property
    def used_gift_card_id(self) -> Optional[str]:
        if self.credit and self.credit.credit_applied > 0:
            return self.credit.gift_card_id
        return None

# module backend.checkout.service
def ensure_not_impersonating(user: Dict[str, Any]) -> None:
    """Un paiement ne doit jamais être attribuable à un administrateur en impersonation."""
    if user.get("impersonator_id"):
        raise ImpersonationForbidden("Paiement interdit en session d'impersonation")

def ensure_payments_enabled(tenant: Dict[str, Any]) -> None:
    if not tenant.get("stripe_account_id"):
        raise PaymentsNotEnabled("Paiements non activés pour ce studio")

def fee_schedule_for(tenant: Dict[str, Any]) -> FeeSchedule:
    return FeeSchedule.from_config(tenant.get("processor_fixed_fee"), tenant.get("processor_percent_fee"))

def build_quote(
    tenant: Dict[str, Any],
    product,
    *,
    coupon_code: Optional[str] = None,
    gift_card_code: Optional[str] = None,
    fee_schedule: Optional[FeeSchedule] = None,
    platform_fee_lookup: Callable[[Optional[str]], Decimal] = tiers.get_platform_fee_percent,
) -> Quote:
    """
    Calcule le devis d'un produit déjà chargé.
    Un code promo ou une carte cadeau invalide ne lève jamais d'erreur.
    """
    tenant_id = str(tenant["id"])
    coupon = coupons.resolve_coupon(tenant_id, coupon_code)
    discount = coupons.discount_for(coupon, product.base_price)
    credit = gift_cards.resolve_credit(tenant_id, gift_card_code, product.base_price - discount)

    breakdown = compute_breakdown(
        product.base_price,
        discount,
        credit.credit_applied if credit else 0,
        fee_schedule=fee_schedule or fee_schedule_for(tenant),
        platform_fee_percent=platform_fee_lookup(tenant.get("tier")),
        charge_mode=select_charge_mode(product),
    )
    return Quote(product=product, coupon=coupon if discount > 0 else None, credit=credit, breakdown=breakdown)

def return_url(tenant: Dict[str, Any], query: str) -> str:
    path = CHECKOUT_RETURN_PATH.format(slug=tenant.get("slug") or "")
    return f"{BASE_URL.rstrip('/')}{path}?{query}"

def dispatch_zero_amount(
    *,
    tenant: Dict[str, Any],
    user: Dict[str, Any],
    quote: Quote,
    metadata: Dict[str, str],
    schedule: Optional[Callable[..., Any]] = None,
) -> Dict[str, Any]:
    """
    Chemin « montant nul »: aucun appel au processeur.
    - Référence de commande synthétique (free_<uuid>).
    - Exécution synchrone propre au produit + débit exact du crédit carte cadeau.
    - Confirmations planifiées en tâche de fond (ne bloquent pas la réponse).
    """
    order_ref = f"free_{uuid4().hex}"
    product = quote.product
    issued_code = None

    if isinstance(product, products.Pack):
        fulfillment.fulfill_pack_purchase(metadata, order_ref, 0)
    elif isinstance(product, products.Plan):
        fulfillment.fulfill_membership_purchase(metadata, order_ref)
    else:
        card = fulfillment.fulfill_gift_card_purchase(metadata, order_ref, product.amount)
        issued_code = (card or {}).get("code")

    if quote.used_gift_card_id:
        fulfillment.redeem_gift_card(quote.used_gift_card_id, quote.breakdown.credit_applied, order_ref)

    currency = tenant.get("currency") or DEFAULT_CURRENCY
    args = (metadata, order_ref, user.get("email"), currency, issued_code)
    if schedule:
        schedule(notifications.send_purchase_confirmations, *args)
    else:
        notifications.send_purchase_confirmations(*args)

    logger.info("checkout.service.dispatch_zero_amount tenant_id=%s order_ref=%s", tenant.get("id"), order_ref)
    return {"complete": True, "return_url": return_url(tenant, f"order_ref={order_ref}"), "order_ref": order_ref}

def process_checkout(
    *,
    tenant: Dict[str, Any],
    user: Dict[str, Any],
    pack_id: Optional[str] = None,
    plan_id: Optional[str] = None,
    gift_card_amount: Any = None,
    coupon_code: Optional[str] = None,
    gift_card_code: Optional[str] = None,
    recipient: Optional[Dict[str, Any]] = None,
    schedule: Optional[Callable[..., Any]] = None,
    fee_schedule: Optional[FeeSchedule] = None,
    platform_fee_lookup: Callable[[Optional[str]], Decimal] = tiers.get_platform_fee_percent,
) -> Dict[str, Any]:
    """
    Point d'entrée du checkout.
    Retour: {"complete": True, "return_url", "order_ref"} (montant nul)
            ou {"session_id", "client_secret"} (session Stripe).
    """
    ensure_not_impersonating(user)
    ref = products.select_product(
        pack_id=pack_id,
        plan_id=plan_id,
        gift_card_amount=gift_card_amount,
        max_gift_card_amount=GIFT_CARD_MAX_AMOUNT,
    )
    ensure_payments_enabled(tenant)

    product = products.load_product(str(tenant["id"]), ref)
    quote = build_quote(
        tenant,
        product,
        coupon_code=coupon_code,
        gift_card_code=gift_card_code,
        fee_schedule=fee_schedule,
        platform_fee_lookup=platform_fee_lookup,
    )
    breakdown = quote.breakdown
    metadata = make_metadata(
        tenant_id=str(tenant["id"]),
        user_id=user.get("id"),
        product=product,
        breakdown=breakdown,
        coupon_id=quote.coupon.id if quote.coupon else None,
        gift_card_id=quote.used_gift_card_id,
        recipient=recipient,
    )
    logger.info(
        "checkout.service.process_checkout tenant_id=%s type=%s mode=%s amount_to_pay=%s gross=%s",
        tenant.get("id"), metadata["type"], breakdown.charge_mode, breakdown.amount_to_pay, breakdown.gross_amount,
    )

    if breakdown.is_zero_amount:
        return dispatch_zero_amount(tenant=tenant, user=user, quote=quote, metadata=metadata, schedule=schedule)

    if breakdown.amount_to_pay < MIN_CHARGE_CENTS:
        raise ValidationError("Total après remise trop faible pour un paiement en ligne")

    params = build_session_params(
        product=product,
        breakdown=breakdown,
        metadata=metadata,
        currency=(tenant.get("currency") or DEFAULT_CURRENCY).lower(),
        return_url=return_url(tenant, "session_id={CHECKOUT_SESSION_ID}"),
        customer_email=user.get("email"),
    )
    session = stripe_client.create_session(tenant["stripe_account_id"], params)
    return {"session_id": session.get("id"), "client_secret": session.get("client_secret")}
