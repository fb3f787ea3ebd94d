"""
Modèle monétaire: centimes entiers et règle d'arrondi unique.
Les pourcentages sont des Decimal (0.029 = 2,9 %), jamais des float.
"""
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP
import re
from typing import Any

from .errors import ValidationError

# module backend.checkout.money
# Plafond des montants saisis: 12 chiffres
MAX_CENTS = 999_999_999_999
_CENTS_PATTERN = re.compile(r"[0-9]{1,12}")

def to_decimal(value: Any) -> Decimal:
    """Convertit int/str/float/Decimal en Decimal (via str pour éviter les artefacts float)."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

def round_half_up(value: Any) -> int:
    """Arrondi au centime le plus proche, demi vers le haut."""
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def ceil_cents(value: Any) -> int:
    return int(to_decimal(value).to_integral_value(rounding=ROUND_CEILING))

def parse_cents(raw: Any) -> int:
    """
    Parse un montant de requête en centimes.
    - Accepte un int ou une chaîne de chiffres ("5000"), rien d'autre.
    - Rejette bool, float, exposants, fractions, négatifs, zéro et montants démesurés.
    """
    if isinstance(raw, bool):
        raise ValidationError("Montant invalide")
    if isinstance(raw, int):
        cents = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if not _CENTS_PATTERN.fullmatch(text):
            raise ValidationError("Montant invalide")
        cents = int(text)
    else:
        raise ValidationError("Montant invalide")
    if cents <= 0 or cents > MAX_CENTS:
        raise ValidationError("Montant invalide")
    return cents

def format_cents(amount: int, currency: str = "usd") -> str:
    return f"{Decimal(amount) / 100:.2f} {currency.upper()}"
