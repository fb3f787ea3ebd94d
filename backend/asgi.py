"""
ASGI entrypoint: `backend.asgi:app` pour gunicorn/uvicorn-workers.
Toute la configuration (routers, middlewares, lifespan) vit dans backend.app.
"""
from backend.app import app

__all__ = ["app"]
