# backoffice/services/stripe_service.py

from typing import Dict, List, Optional

import httpx
from loguru import logger

from backoffice.core.config import Settings
from backoffice.core.exceptions import UpstreamError
from backoffice.core.logging_config import trace_id_var

PAYMENT_ERROR_MESSAGE = "Erro ao criar pagamento"
DEFAULT_PAYMENT_METHOD_TYPES = ["card"]


class StripeService:
    """Criação de PaymentIntents pela API REST da Stripe (form-encoded, chave secreta como bearer)."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self.http_client = http_client
        self.settings = settings

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.STRIPE_SECRET_KEY}",
            "Stripe-Version": self.settings.STRIPE_API_VERSION,
        }

    async def create_payment_intent(
        self, amount: int, currency: str, payment_method_types: Optional[List[str]] = None
    ) -> str:
        """Cria o PaymentIntent e retorna o client_secret."""
        log = logger.bind(trace_id=trace_id_var.get(), service="StripeService", amount=amount, currency=currency)
        if not self.settings.STRIPE_SECRET_KEY:
            log.critical("STRIPE_SECRET_KEY ausente. Não é possível criar pagamento.")
            raise UpstreamError(PAYMENT_ERROR_MESSAGE)

        form = {
            "amount": str(amount),
            "currency": currency,
            "payment_method_types[]": list(payment_method_types or DEFAULT_PAYMENT_METHOD_TYPES),
        }

        log.info("Criando PaymentIntent na Stripe...")
        try:
            response = await self.http_client.post(
                f"{self.settings.STRIPE_API_URL}/payment_intents",
                data=form,
                headers=self._headers(),
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            )
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Erro ao criar PaymentIntent Stripe: {e}")
            raise UpstreamError(PAYMENT_ERROR_MESSAGE) from e

        if not (200 <= response.status_code < 300):
            error_info = payload.get("error") if isinstance(payload, dict) else None
            if not isinstance(error_info, dict):
                error_info = {}
            log.error(
                f"Stripe recusou o PaymentIntent. Status={response.status_code}, "
                f"Type='{error_info.get('type')}', Message='{error_info.get('message')}'"
            )
            raise UpstreamError(PAYMENT_ERROR_MESSAGE)

        if not isinstance(payload, dict):
            log.error(f"Resposta da Stripe não é um objeto JSON: {type(payload).__name__}")
            raise UpstreamError(PAYMENT_ERROR_MESSAGE)

        client_secret = payload.get("client_secret")
        if not client_secret:
            log.error("Resposta da Stripe sem client_secret.")
            raise UpstreamError(PAYMENT_ERROR_MESSAGE)

        log.success(f"PaymentIntent criado: {payload.get('id')}")
        return client_secret
