"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
Charges directes sur le compte connecté du studio (stripe_account=...).
"""
import logging
import stripe
from typing import Any, Dict

from .errors import ProcessorError

logger = logging.getLogger(__name__)

# module backend.checkout.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l’emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    - En absence de clé, les appels Stripe échoueront côté SDK (ex: No API key provided).
    """
    from backend.config import STRIPE_SECRET_KEY
    if STRIPE_SECRET_KEY:
        stripe.api_key = STRIPE_SECRET_KEY
    return stripe

def create_session(stripe_account: str, params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout sur le compte connecté.
    - params: line_items, mode, ui_mode, return_url, metadata, frais d'application...
    - Aucune relance: une erreur Stripe devient ProcessorError (terminale pour la requête).
    Retour: dict session (ex: {"id": "cs_test_...", "client_secret": "..."})
    """
    require_stripe()
    try:
        session = stripe.checkout.Session.create(stripe_account=stripe_account, **params)
    except stripe.StripeError as e:
        logger.exception("checkout.stripe_client.create_session failed account=%s", stripe_account)
        raise ProcessorError("Échec de l'initialisation du paiement") from e
    return _session_fields(session)

def _session_fields(session: Any) -> Dict[str, Any]:
    # Objet StripeObject ou dict (tests)
    if isinstance(session, dict):
        get = session.get
    else:
        get = lambda key: getattr(session, key, None)
    return {"id": get("id"), "client_secret": get("client_secret"), "url": get("url")}
