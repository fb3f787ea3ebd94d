"""
Gestionnaires d’exceptions (utilisés par create_app).
- CheckoutError: code HTTP porté par l’erreur + {"detail", "code"}.
- HTTPException: JSON FastAPI standard pour les clients API.
- Exception inattendue: 500 générique, sans exposer l’état du calcul.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from backend.checkout.errors import CheckoutError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CheckoutError)
    async def checkout_error(request: Request, exc: CheckoutError):
        logger.info("checkout refusé path=%s code=%s", request.url.path, exc.code)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Erreur inattendue path=%s", request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Erreur interne"})
