"""
Module 'checkout' (feature-first): point d'entrée public.
Réunit modèle monétaire, résolveurs (coupon, carte cadeau), calcul du prix,
construction de session Stripe, exécution des commandes et services.
"""

from .money import round_half_up, ceil_cents, parse_cents, format_cents
from .products import Pack, Plan, GiftCardPurchase, PackRef, PlanRef, select_product, load_product
from .coupons import Coupon, resolve_coupon, discount_for
from .gift_cards import GiftCardCredit, resolve_credit
from .tiers import get_platform_fee_percent
from .pricing import FeeSchedule, PricingBreakdown, compute_breakdown, select_charge_mode, PAYMENT, SUBSCRIPTION
from .metadata import make_metadata, parse_metadata
from .session_builder import to_line_items, build_session_params
from .service import build_quote, dispatch_zero_amount, process_checkout

__all__ = [
    # money
    "round_half_up",
    "ceil_cents",
    "parse_cents",
    "format_cents",
    # products
    "Pack",
    "Plan",
    "GiftCardPurchase",
    "PackRef",
    "PlanRef",
    "select_product",
    "load_product",
    # resolvers
    "Coupon",
    "resolve_coupon",
    "discount_for",
    "GiftCardCredit",
    "resolve_credit",
    "get_platform_fee_percent",
    # pricing
    "FeeSchedule",
    "PricingBreakdown",
    "compute_breakdown",
    "select_charge_mode",
    "PAYMENT",
    "SUBSCRIPTION",
    # stripe
    "make_metadata",
    "parse_metadata",
    "to_line_items",
    "build_session_params",
    # services
    "build_quote",
    "dispatch_zero_amount",
    "process_checkout",
]
