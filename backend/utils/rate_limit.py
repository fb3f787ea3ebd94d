"""
Limiteur de débit des routes du checkout (création de session, validation de codes).
- fastapi-limiter (Redis) quand le lifespan l'a initialisé.
- LOCAL_RATE_LIMIT_FALLBACK=1: fenêtre glissante en mémoire, par processus (dev/tests).
- Clé: jeton hashé (Bearer ou cookie) sinon IP, par chemin.
"""
from collections import deque
from typing import Any, Deque, Dict, Tuple
from urllib.parse import urlparse
from fastapi import Request, Response, HTTPException
import os
import time
import hashlib
from backend.utils.security import token_from_request

def client_key(request: Request) -> str:
    path = request.url.path
    token = token_from_request(request)
    if token:
        return f"user:{hashlib.sha256(token.encode('utf-8')).hexdigest()[:16]}:{path}"
    ip = request.client.host if request.client else "local"
    return f"ip:{ip}:{path}"

def _prune(hits: Dict[str, Tuple[int, Deque[float]]], now: float) -> None:
    """Retire les horodatages expirés et oublie les clés dont la fenêtre est vide."""
    for key in list(hits):
        seconds, window = hits[key]
        while window and now - window[0] >= seconds:
            window.popleft()
        if not window:
            del hits[key]

def _local_window_hit(request: Request, times: int, seconds: int) -> None:
    """Enregistre l'appel; 429 si 'times' appels ont déjà eu lieu dans la fenêtre."""
    state = request.app.state
    if not hasattr(state, "rate_limit_hits"):
        state.rate_limit_hits = {}
    now = time.monotonic()
    _prune(state.rate_limit_hits, now)
    _, window = state.rate_limit_hits.setdefault(client_key(request), (seconds, deque()))
    if len(window) >= times:
        raise HTTPException(status_code=429, detail="Trop de requêtes, réessayez plus tard")
    window.append(now)

def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            _local_window_hit(request, times, seconds)
            return
        if getattr(request.app.state, "rate_limit_enabled", None) is not True:
            return

        from fastapi_limiter.depends import RateLimiter

        async def _identifier(req: Request) -> str:
            return client_key(req)
        await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    from fastapi_limiter import FastAPILimiter

    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    ready = getattr(FastAPILimiter, "redis", None) is not None
    info: Dict[str, Any] = {
        "enabled": bool(enabled) if enabled is not None else None,
        "ready": ready,
        "backend": "redis" if ready else None,
        "local_fallback": os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1",
    }
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if ready and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
