# backoffice/core/rate_limit.py

from fastapi import FastAPI, Request
from limits import parse
from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address

from backoffice.core.config import Settings
from backoffice.core.exceptions import RateLimitExceededError, error_response

# Escopo único: o limite vale para a aplicação inteira, não por rota
APP_SCOPE = "app"


def build_limiter(settings: Settings) -> Limiter:
    """
    Limite único por endereço do cliente, compartilhado por todas as rotas,
    em janela móvel. Contadores em memória: não sobrevivem a restart.
    """
    limiter = Limiter(
        key_func=get_remote_address,
        application_limits=[settings.rate_limit],
        strategy="moving-window",
        storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    )
    logger.info(f"Rate limiter configurado: {settings.rate_limit} por cliente ({settings.RATE_LIMIT_STORAGE_URI})")
    return limiter


def build_rate_limit_middleware(limiter: Limiter, settings: Settings):
    """
    Middleware HTTP que consome o limite antes de qualquer rota. Não depende de
    localizar o endpoint da requisição: rotas inexistentes também contam.
    """
    limit_item = parse(settings.rate_limit)

    async def rate_limit_middleware(request: Request, call_next):
        if limiter.enabled:
            client_key = get_remote_address(request)
            if not limiter.limiter.hit(limit_item, APP_SCOPE, client_key):
                logger.warning(f"Rate limit excedido para {client_key}: {settings.rate_limit}")
                return error_response(RateLimitExceededError.status_code, settings.RATE_LIMIT_MESSAGE)
        return await call_next(request)

    return rate_limit_middleware


def setup_rate_limiting(app: FastAPI, settings: Settings) -> Limiter:
    limiter = build_limiter(settings)
    app.state.limiter = limiter
    app.middleware("http")(build_rate_limit_middleware(limiter, settings))
    return limiter
