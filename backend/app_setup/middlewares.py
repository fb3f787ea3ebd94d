from fastapi import Request, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from backend.config import COOKIE_SECURE, CORS_ORIGINS, ALLOWED_HOSTS

"""
Middlewares de l'API checkout.
- register_basic_middlewares: CORS pour le widget embarqué des studios, hôtes autorisés.
- register_security_middleware: en-têtes de sécurité des réponses JSON.
- register_no_cache_middleware: aucune mise en cache des réponses /api/v1/studios/*
  (client_secret Stripe, soldes de cartes cadeaux).
"""

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}
HSTS = "max-age=63072000; includeSubDomains; preload"
NO_CACHE_PREFIX = "/api/v1/studios/"

def register_basic_middlewares(app: FastAPI) -> None:
    """
    - CORSMiddleware: le widget appelle l'API depuis le site du studio (Authorization + JSON).
    - TrustedHostMiddleware: ALLOWED_HOSTS, ouvert si CORS_ORIGINS contient '*'.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    hosts = ALLOWED_HOSTS + ["*"] if "*" in CORS_ORIGINS else ALLOWED_HOSTS
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=hosts)

def register_security_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if COOKIE_SECURE:
            response.headers.setdefault("Strict-Transport-Security", HSTS)
        return response

def register_no_cache_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def no_cache_for_checkout(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith(NO_CACHE_PREFIX):
            response.headers["Cache-Control"] = "no-store, max-age=0"
            response.headers["Pragma"] = "no-cache"
        return response
