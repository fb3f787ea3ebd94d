"""
Cycle de vie de l'API checkout.
Au démarrage: branche fastapi-limiter sur Redis (limite des créations de session
et des essais de codes). À l'arrêt: ferme la connexion Redis.

Variables d'environnement:
- RATE_LIMIT_REDIS_URL: Redis du limiteur (défaut redis://127.0.0.1:6379/0)
- DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: pas de limiteur (tests)
- USE_FAKE_REDIS_FOR_TESTS=1: Redis en mémoire via fakeredis
- LOCAL_RATE_LIMIT_FALLBACK=1: fenêtre locale si Redis est injoignable
"""
import os
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter
import redis.asyncio as aioredis

logger = logging.getLogger("uvicorn.error")

def _limiter_redis():
    if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
        from fakeredis.aioredis import FakeRedis
        return FakeRedis(decode_responses=True)
    url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
    return aioredis.from_url(url, encoding="utf-8", decode_responses=True)

@asynccontextmanager
async def lifespan(app: FastAPI):
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("checkout rate limit: disabled (tests)")
        yield
        return

    limiter_ready = False
    try:
        await FastAPILimiter.init(_limiter_redis())
        limiter_ready = True
        app.state.rate_limit_enabled = True
        logger.info("checkout rate limit: redis")
    except Exception as e:
        # Sans Redis: fenêtre locale si demandée, sinon aucune limite
        app.state.rate_limit_enabled = os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1"
        logger.warning("checkout rate limit: redis init failed (%s), local_fallback=%s", e, app.state.rate_limit_enabled)

    try:
        yield
    finally:
        if limiter_ready:
            await FastAPILimiter.close()
