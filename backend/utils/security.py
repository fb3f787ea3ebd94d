"""
Identité de l'appelant.
- Jeton: Bearer en priorité, cookie de session en repli.
- Jeton d'impersonation (HS256, claim impersonator_id) signé par l'outil d'admin:
  l'utilisateur est marqué impersonator_id pour que le checkout le refuse.
- Sinon: vérification Supabase (auth.get_user).
"""
from fastapi import Request, HTTPException, Depends
from typing import Optional, Dict, Any
import logging
import jwt

import backend.infra.supabase_client as supabase_client
from backend.config import IMPERSONATION_JWT_SECRET

COOKIE_NAME = "sb_access"

logger = logging.getLogger(__name__)

def token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(COOKIE_NAME)

def decode_impersonation_token(token: str) -> Optional[Dict[str, Any]]:
    """Claims du jeton d'impersonation, ou None si ce n'en est pas un."""
    if not IMPERSONATION_JWT_SECRET:
        return None
    try:
        claims = jwt.decode(token, IMPERSONATION_JWT_SECRET, algorithms=["HS256"])
    except jwt.PyJWTError:
        return None
    if not claims.get("impersonator_id"):
        return None
    return claims

def get_user_from_token(token: str) -> Dict[str, Any]:
    """Normalise l’utilisateur depuis supabase.auth.get_user(access_token)."""
    res = supabase_client.get_supabase().auth.get_user(token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
            "user_metadata": getattr(user, "user_metadata", None),
        }
    return user or {}

def get_current_user(request: Request) -> Dict[str, Any]:
    token = token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Non authentifié")

    claims = decode_impersonation_token(token)
    if claims:
        logger.info("security.get_current_user impersonation sub=%s impersonator_id=%s", claims.get("sub"), claims.get("impersonator_id"))
        return {
            "id": claims.get("sub"),
            "email": claims.get("email"),
            "impersonator_id": claims["impersonator_id"],
        }

    try:
        user = get_user_from_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    if not user.get("id"):
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    return user

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user
