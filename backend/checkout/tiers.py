"""
Paliers d'abonnement des studios et part de revenus de la plateforme.
Recherche pure, sans effet de bord.
"""
from decimal import Decimal
from typing import Dict, Any

# module backend.checkout.tiers
TIERS: Dict[str, Dict[str, Any]] = {
    "basic": {"name": "Launch", "application_fee_percent": Decimal("0.05")},
    "growth": {"name": "Growth", "application_fee_percent": Decimal("0.015")},
    "scale": {"name": "Scale", "application_fee_percent": Decimal("0")},
}

DEFAULT_TIER = "basic"

def get_tier_config(tier: str | None) -> Dict[str, Any]:
    """Palier inconnu -> palier 'basic'."""
    return TIERS.get((tier or "").strip().lower(), TIERS[DEFAULT_TIER])

def get_platform_fee_percent(tier: str | None) -> Decimal:
    """Part de la plateforme en fraction décimale (0.05 = 5 %)."""
    return get_tier_config(tier)["application_fee_percent"]
