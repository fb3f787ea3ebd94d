"""
Clients Supabase partagés (créés à la première utilisation).
- anon: vérification des jetons d'accès des membres.
- service-role: lectures du catalogue du studio et écritures d'exécution
  (packs, abonnements, cartes cadeaux), RLS contournée.
"""
from typing import Optional
from supabase import create_client, Client
from backend.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY

_clients: dict = {}

def _client(role: str, key: Optional[str]) -> Client:
    if not SUPABASE_URL or not key:
        raise RuntimeError(f"Supabase non configuré (SUPABASE_URL / clé {role})")
    if role not in _clients:
        _clients[role] = create_client(SUPABASE_URL, key)
    return _clients[role]

def get_supabase() -> Client:
    return _client("anon", SUPABASE_ANON)

def get_service_supabase() -> Client:
    return _client("service", SUPABASE_SERVICE_KEY)
