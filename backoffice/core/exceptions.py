# backoffice/core/exceptions.py

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

INTERNAL_ERROR_MESSAGE = "Erro interno do servidor"


class AppError(Exception):
    """Erro base da aplicação; vira `{"error": message}` na resposta HTTP."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Entrada ausente ou malformada. Sempre atribuível ao cliente, nunca re-tentada."""

    status_code = status.HTTP_400_BAD_REQUEST


class RateLimitExceededError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class UpstreamError(AppError):
    """Falha do document store ou de API de terceiros. Logada no servidor, genérica para o cliente."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class NotFoundOrUnsupportedError(AppError):
    """Entidade ou referência desconhecida (ex: sync ERP)."""

    status_code = status.HTTP_400_BAD_REQUEST


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} em {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{type(exc).__name__} em {request.method} {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.message)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    logger.warning(f"Validation Error: {errors}")
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Requisição inválida")
    detail = f"{location}: {message}" if location else message
    return error_response(status.HTTP_400_BAD_REQUEST, f"Parâmetros inválidos: {detail}")


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled Exception: {exc}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
