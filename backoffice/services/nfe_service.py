# backoffice/services/nfe_service.py

from typing import Any, Dict

import httpx
from loguru import logger

from backoffice.core.config import Settings
from backoffice.core.document_store import SERVER_TIMESTAMP, DocumentStore
from backoffice.core.exceptions import UpstreamError, ValidationError
from backoffice.core.logging_config import trace_id_var
from backoffice.models.integrations import NFeResponse

INVALID_NFE_MESSAGE = "Dados inválidos para emissão"
NFE_SUCCESS_MESSAGE = "NFe emitida com sucesso"
NFE_ERROR_MESSAGE = "Erro ao emitir NFe"
NFE_STATUS_EMITIDA = "emitida"


class NFeService:
    def __init__(self, http_client: httpx.AsyncClient, store: DocumentStore, settings: Settings):
        self.http_client = http_client
        self.store = store
        self.settings = settings

    async def emitir(self, pedido_id: Any, dados_nfe: Any) -> NFeResponse:
        """Envia os dados fiscais ao provedor e grava `notas_fiscais/{pedidoId}` com a resposta."""
        log = logger.bind(trace_id=trace_id_var.get(), service="NFeService", pedido_id=pedido_id)
        if not pedido_id or not dados_nfe:
            log.warning("Emissão de NFe sem pedidoId ou dadosNFe.")
            raise ValidationError(INVALID_NFE_MESSAGE)
        if not self.settings.NFE_API_TOKEN:
            log.critical("NFE_API_TOKEN ausente. Não é possível emitir NFe.")
            raise UpstreamError(NFE_ERROR_MESSAGE)

        log.info("Emitindo NFe...")
        try:
            response = await self.http_client.post(
                self.settings.NFE_API_URL,
                json=dados_nfe,
                headers={"Authorization": f"Bearer {self.settings.NFE_API_TOKEN}"},
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            provider_response: Dict[str, Any] = response.json()
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Erro ao emitir NFe no provedor: {e}")
            raise UpstreamError(NFE_ERROR_MESSAGE) from e

        try:
            await self.store.set(
                self.settings.NOTAS_FISCAIS_COLLECTION,
                str(pedido_id),
                {"status": NFE_STATUS_EMITIDA, "response": provider_response, "updatedAt": SERVER_TIMESTAMP},
            )
        except UpstreamError as e:
            log.error(f"NFe emitida mas falhou ao gravar nota fiscal: {e}")
            raise UpstreamError(NFE_ERROR_MESSAGE) from e

        log.success("NFe emitida.")
        return NFeResponse(success=True, message=NFE_SUCCESS_MESSAGE)
