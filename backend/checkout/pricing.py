"""
Calcul du prix d'une commande (fonction pure, sans état caché).

Ordre fixe des étapes:
  1) montant taxable = prix de base - remise
  2) reste à payer = taxable - crédit carte cadeau
  3) reste à payer nul -> aucun frais (chemin « montant nul »)
  4) majoration des frais processeur: le client paie les frais, le studio
     encaisse exactement le reste à payer
     brut = ceil((reste + frais_fixes) / (1 - frais_pourcentage))
  5) commission plateforme: montant fixe en paiement ponctuel, pourcentage
     de chaque facture future en abonnement (le brut récurrent n'est pas
     connu d'avance)
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from backend.config import STRIPE_FIXED_FEE_CENTS, STRIPE_PERCENT_FEE
from .money import ceil_cents, round_half_up, to_decimal
from .products import GiftCardPurchase, Pack, Plan

PAYMENT = "payment"
SUBSCRIPTION = "subscription"

@dataclass(frozen=True)
class FeeSchedule:
    fixed_fee: int
    percent_fee: Decimal

    def __post_init__(self):
        if self.fixed_fee < 0:
            raise ValueError("fixed_fee négatif")
        if not (Decimal("0") <= to_decimal(self.percent_fee) < Decimal("1")):
            raise ValueError("percent_fee doit être dans [0, 1)")

    @classmethod
    def from_config(cls, fixed_fee: Any = None, percent_fee: Any = None) -> "FeeSchedule":
        """Barème par défaut (config), surchargeable par les valeurs non nulles du tenant."""
        return cls(
            fixed_fee=int(fixed_fee) if fixed_fee is not None else STRIPE_FIXED_FEE_CENTS,
            percent_fee=to_decimal(percent_fee) if percent_fee is not None else STRIPE_PERCENT_FEE,
        )

@dataclass(frozen=True)
class PricingBreakdown:
    base_price: int
    discount_amount: int
    taxable_amount: int
    credit_applied: int
    amount_to_pay: int
    processor_fee: int
    gross_amount: int
    application_fee_amount: int
    charge_mode: str
    # Points de pourcentage (3 = 3 %), uniquement en abonnement
    application_fee_percent: Optional[Decimal] = None

    @property
    def is_zero_amount(self) -> bool:
        return self.amount_to_pay == 0

def select_charge_mode(product) -> str:
    """Packs, cartes cadeaux et plans 'one_time' -> payment; plans week/month/year -> subscription."""
    if isinstance(product, Plan) and product.is_recurring:
        return SUBSCRIPTION
    if isinstance(product, (Pack, Plan, GiftCardPurchase)):
        return PAYMENT
    raise ValueError(f"Produit inconnu: {product!r}")

def gross_up(amount_to_pay: int, fee_schedule: FeeSchedule) -> int:
    """Montant brut tel que brut - frais(brut) couvre exactement amount_to_pay."""
    percent = to_decimal(fee_schedule.percent_fee)
    return ceil_cents((Decimal(amount_to_pay) + fee_schedule.fixed_fee) / (Decimal("1") - percent))

def compute_breakdown(
    base_price: int,
    discount_amount: int = 0,
    credit_applied: int = 0,
    *,
    fee_schedule: FeeSchedule,
    platform_fee_percent: Any = Decimal("0"),
    charge_mode: str = PAYMENT,
) -> PricingBreakdown:
    if charge_mode not in (PAYMENT, SUBSCRIPTION):
        raise ValueError(f"charge_mode invalide: {charge_mode}")
    if base_price < 0:
        raise ValueError("base_price négatif")
    if not 0 <= discount_amount <= base_price:
        raise ValueError("discount_amount hors de [0, base_price]")
    taxable_amount = base_price - discount_amount

    if not 0 <= credit_applied <= taxable_amount:
        raise ValueError("credit_applied hors de [0, taxable_amount]")
    amount_to_pay = taxable_amount - credit_applied

    if amount_to_pay == 0:
        return PricingBreakdown(
            base_price=base_price,
            discount_amount=discount_amount,
            taxable_amount=taxable_amount,
            credit_applied=credit_applied,
            amount_to_pay=0,
            processor_fee=0,
            gross_amount=0,
            application_fee_amount=0,
            charge_mode=charge_mode,
        )

    gross_amount = gross_up(amount_to_pay, fee_schedule)
    processor_fee = gross_amount - amount_to_pay

    platform_percent = to_decimal(platform_fee_percent)
    if charge_mode == SUBSCRIPTION:
        application_fee_amount = 0
        application_fee_percent = (platform_percent * 100).quantize(Decimal("0.01"))
    else:
        application_fee_amount = round_half_up(Decimal(gross_amount) * platform_percent)
        application_fee_percent = None

    if gross_amount < amount_to_pay or gross_amount - processor_fee != amount_to_pay:
        raise ValueError("majoration incohérente")
    if not 0 <= application_fee_amount <= gross_amount:
        raise ValueError("application_fee_amount hors de [0, gross_amount]")

    return PricingBreakdown(
        base_price=base_price,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        credit_applied=credit_applied,
        amount_to_pay=amount_to_pay,
        processor_fee=processor_fee,
        gross_amount=gross_amount,
        application_fee_amount=application_fee_amount,
        charge_mode=charge_mode,
        application_fee_percent=application_fee_percent,
    )
