# backoffice/services/correios_service.py

from typing import Any, Dict

import httpx
from loguru import logger

from backoffice.core.config import Settings
from backoffice.core.exceptions import UpstreamError
from backoffice.core.logging_config import trace_id_var
from backoffice.models.integrations import FreteRequest

FRETE_ERROR_MESSAGE = "Erro ao calcular frete"


class CorreiosService:
    """Consulta de preço e prazo no calculador dos Correios."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self.http_client = http_client
        self.settings = settings

    def build_params(self, frete: FreteRequest) -> Dict[str, Any]:
        return {
            "nCdEmpresa": self.settings.CORREIOS_EMPRESA,
            "sDsSenha": self.settings.CORREIOS_SENHA,
            "nCdServico": frete.servico,
            "sCepOrigem": frete.cep_origem,
            "sCepDestino": frete.cep_destino,
            "nVlPeso": frete.peso,
            "nCdFormato": 1,  # caixa/pacote
            "nVlComprimento": frete.comprimento,
            "nVlAltura": frete.altura,
            "nVlLargura": frete.largura,
            "nVlDiametro": frete.diametro,
            "sCdMaoPropria": "N",
            "nVlValorDeclarado": 0,
            "sCdAvisoRecebimento": "N",
            "StrRetorno": "json",
        }

    async def calculate_frete(self, frete: FreteRequest) -> Any:
        """Retorna o payload da transportadora sem transformação."""
        log = logger.bind(trace_id=trace_id_var.get(), service="CorreiosService", servico=frete.servico)
        log.info(f"Calculando frete {frete.cep_origem} -> {frete.cep_destino}...")
        try:
            response = await self.http_client.get(
                self.settings.CORREIOS_API_URL,
                params=self.build_params(frete),
                timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            log.error("Timeout ao consultar Correios.")
            raise UpstreamError(FRETE_ERROR_MESSAGE) from e
        except (httpx.HTTPError, ValueError) as e:
            log.error(f"Erro ao calcular frete Correios: {e}")
            raise UpstreamError(FRETE_ERROR_MESSAGE) from e

        log.success("Frete calculado.")
        return data
