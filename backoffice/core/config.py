# backoffice/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from loguru import logger
from pathlib import Path


class Settings(BaseSettings):
    PROJECT_NAME: str = "Retail Backoffice"
    API_PREFIX: str = ""  # Ex: "/api/v1"; vazio expõe POST /pedidos na raiz
    LOG_LEVEL: str = "INFO"

    # Document store
    MONGODB_URI: str = "mongodb://localhost:27017/backoffice"
    MONGODB_DB_NAME: str | None = None  # Se vazio, extraído da URI
    PEDIDOS_COLLECTION: str = "pedidos"
    AUDIT_COLLECTION: str = "audit_logs"
    PRODUTOS_COLLECTION: str = "produtos"
    NOTAS_FISCAIS_COLLECTION: str = "notas_fiscais"

    # Rate limiting (janela móvel, por endereço do cliente)
    RATE_LIMIT_MAX: int = Field(default=30, ge=1)
    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=60, ge=1)
    RATE_LIMIT_MESSAGE: str = "Muitas requisições, por favor tente novamente mais tarde."
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    # Correios
    CORREIOS_API_URL: str = "http://ws.correios.com.br/calculador/CalcPrecoPrazo.aspx"
    CORREIOS_EMPRESA: str = ""
    CORREIOS_SENHA: str = ""

    # Stripe
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_API_URL: str = "https://api.stripe.com/v1"
    STRIPE_API_VERSION: str = "2022-11-15"

    # NFe
    NFE_API_URL: str = "https://api.nfe.io/v1/nfe"
    NFE_API_TOKEN: str | None = None

    HTTP_TIMEOUT_SECONDS: float = 25.0
    CORS_ORIGINS: str | None = None

    model_config = SettingsConfigDict(
        env_file=str(Path.cwd() / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def rate_limit(self) -> str:
        """Limite no formato aceito pelo slowapi/limits (ex: '30/60 seconds')."""
        return f"{self.RATE_LIMIT_MAX}/{self.RATE_LIMIT_WINDOW_SECONDS} seconds"

    @property
    def database_name(self) -> str:
        if self.MONGODB_DB_NAME:
            return self.MONGODB_DB_NAME
        db_name = self.MONGODB_URI.split('/')[-1].split('?')[0]
        if not db_name or '@' in db_name or ':' in db_name or len(db_name) > 63:
            logger.warning("Could not parse DB name from MONGODB_URI, using default: backoffice")
            return "backoffice"
        return db_name


@lru_cache()
def get_settings() -> Settings:
    """Carrega e valida as configurações da aplicação."""
    logger.info("Carregando configurações da aplicação...")
    settings_instance = Settings()
    if not settings_instance.STRIPE_SECRET_KEY:
        logger.warning("STRIPE_SECRET_KEY não configurada. Criação de pagamentos ficará indisponível.")
    if not settings_instance.NFE_API_TOKEN:
        logger.warning("NFE_API_TOKEN não configurado. Emissão de NFe ficará indisponível.")
    return settings_instance
