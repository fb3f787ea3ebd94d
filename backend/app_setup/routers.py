"""
Registre central des routers.
- API v1: checkout (sessions, validation des codes promo et cartes cadeaux)
- Health: health_router
"""
from fastapi import FastAPI
from backend.checkout import views as checkout_views
from backend.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    app.include_router(checkout_views.router)
    app.include_router(health_router)
