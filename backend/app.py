# module backend.app
from fastapi import FastAPI

from backend.app_setup.lifespan import lifespan
from backend.app_setup.middlewares import register_basic_middlewares, register_security_middleware, register_no_cache_middleware
from backend.app_setup.exceptions import register_exception_handlers
from backend.app_setup.routers import register_routers

def create_app() -> FastAPI:
    """
    Crée et configure l’instance FastAPI de l’application.
    Étapes et ordre:
      1) register_basic_middlewares: CORS, TrustedHost.
      2) register_security_middleware: en-têtes de sécurité.
      3) register_no_cache_middleware: pas de cache sur /api/v1/studios/*.
      4) register_exception_handlers: erreurs checkout, HTTP, 500 générique.
      5) register_routers: checkout + health.
    Retourne:
      - FastAPI: l’application prête à être servie (ASGI).
    """
    app = FastAPI(title="Studio Checkout API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app

# App globale
app = create_app()
