# backend.config
from decimal import Decimal
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale du backend checkout.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe), CORS/hosts
- Expose le barème de frais du processeur et les bornes de montants
- Fournit l'URL de retour du checkout embarqué
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _int_env(name: str, default: int) -> int:
    raw = _clean_env(os.getenv(name) or "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default

# Supabase: URLs et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")

# Jetons d'impersonation (HS256) émis par l'outil d'administration
IMPERSONATION_JWT_SECRET = _clean_env(os.getenv("IMPERSONATION_JWT_SECRET") or "")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Stripe: clé secrète de la plateforme (charges directes sur les comptes connectés)
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")

# Barème du processeur: frais = fixe + pourcentage * montant brut
STRIPE_FIXED_FEE_CENTS = _int_env("STRIPE_FIXED_FEE_CENTS", 30)
STRIPE_PERCENT_FEE = Decimal(_clean_env(os.getenv("STRIPE_PERCENT_FEE") or "") or "0.029")

# Montants
DEFAULT_CURRENCY = (_clean_env(os.getenv("DEFAULT_CURRENCY") or "") or "usd").lower()
MIN_CHARGE_CENTS = _int_env("MIN_CHARGE_CENTS", 50)
GIFT_CARD_MAX_AMOUNT = _int_env("GIFT_CARD_MAX_AMOUNT", 100_000)

# Page de retour du checkout embarqué ({slug} remplacé par le studio)
CHECKOUT_RETURN_PATH = os.getenv("CHECKOUT_RETURN_PATH", "/studio/{slug}/return")

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000")
