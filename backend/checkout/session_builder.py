"""
Construction de la requête de session Checkout (pur, pas d'appel Stripe).
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .money import format_cents
from .pricing import PricingBreakdown, SUBSCRIPTION
from .products import Plan

PROCESSING_FEE_LABEL = "Frais de traitement"

# module backend.checkout.session_builder
def _description(breakdown: PricingBreakdown, currency: str) -> Optional[str]:
    parts = []
    if breakdown.discount_amount:
        parts.append(f"Remise: -{format_cents(breakdown.discount_amount, currency)}")
    if breakdown.credit_applied:
        parts.append(f"Carte cadeau: -{format_cents(breakdown.credit_applied, currency)}")
    return " · ".join(parts) or None

def to_line_items(product, breakdown: PricingBreakdown, currency: str) -> List[Dict[str, Any]]:
    """
    Construit les line_items Stripe.
    - Ligne principale: reste à payer (après remise et crédit), récurrente en abonnement.
    - Ligne « Frais de traitement » si processor_fee > 0, jamais récurrente.
    """
    product_data: Dict[str, Any] = {"name": product.name}
    description = _description(breakdown, currency)
    if description:
        product_data["description"] = description

    price_data: Dict[str, Any] = {
        "currency": currency,
        "unit_amount": breakdown.amount_to_pay,
        "product_data": product_data,
    }
    if breakdown.charge_mode == SUBSCRIPTION and isinstance(product, Plan):
        price_data["recurring"] = {"interval": product.interval, "interval_count": 1}

    line_items = [{"price_data": price_data, "quantity": 1}]
    if breakdown.processor_fee > 0:
        line_items.append({
            "price_data": {
                "currency": currency,
                "unit_amount": breakdown.processor_fee,
                "product_data": {"name": PROCESSING_FEE_LABEL},
            },
            "quantity": 1,
        })
    return line_items

def build_session_params(
    *,
    product,
    breakdown: PricingBreakdown,
    metadata: Dict[str, str],
    currency: str,
    return_url: str,
    customer_email: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Paramètres de stripe.checkout.Session.create (checkout embarqué).
    - payment: payment_intent_data.application_fee_amount (montant fixe)
    - subscription: subscription_data.application_fee_percent (chaque facture)
    - Une commission nulle est omise.
    """
    if breakdown.amount_to_pay <= 0:
        raise ValueError("Session Stripe inutile pour un montant nul")

    params: Dict[str, Any] = {
        "ui_mode": "embedded",
        "mode": breakdown.charge_mode,
        "line_items": to_line_items(product, breakdown, currency),
        "return_url": return_url,
        "metadata": metadata,
    }
    if customer_email:
        params["customer_email"] = customer_email

    if breakdown.charge_mode == SUBSCRIPTION:
        subscription_data: Dict[str, Any] = {"metadata": metadata}
        percent = breakdown.application_fee_percent or Decimal("0")
        if percent > 0:
            subscription_data["application_fee_percent"] = float(percent)
        params["subscription_data"] = subscription_data
    else:
        payment_intent_data: Dict[str, Any] = {"metadata": metadata}
        if breakdown.application_fee_amount > 0:
            payment_intent_data["application_fee_amount"] = breakdown.application_fee_amount
        params["payment_intent_data"] = payment_intent_data
    return params
