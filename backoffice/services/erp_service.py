# backoffice/services/erp_service.py

from typing import Any, Dict, List, Type

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from backoffice.core.document_store import DocumentStore
from backoffice.core.exceptions import NotFoundOrUnsupportedError, UpstreamError, ValidationError
from backoffice.core.logging_config import trace_id_var
from backoffice.models.analytics import Produto
from backoffice.models.integrations import ErpSyncResponse
from backoffice.models.pedidos import Pedido
from backoffice.modules.pedidos.repository import PedidoRepository

INVALID_PARAMS_MESSAGE = "Parâmetros inválidos"
UNKNOWN_ENTITY_MESSAGE = "Entidade desconhecida"
SYNC_SUCCESS_MESSAGE = "Sincronização realizada com sucesso"
ERP_ERROR_MESSAGE = "Erro interno"


class ErpSyncService:
    """
    Recebe dados do ERP e aplica no document store.

    - produtos: upsert por `name`.
    - pedidos: atualização de campos por `id` (dispara o trigger de auditoria de update).
    """

    def __init__(self, store: DocumentStore, pedido_repo: PedidoRepository, produtos_collection: str):
        self.store = store
        self.pedido_repo = pedido_repo
        self.produtos_collection = produtos_collection

    @staticmethod
    def _as_records(data: Any) -> List[Dict[str, Any]]:
        records = data if isinstance(data, list) else [data]
        if not records or not all(isinstance(record, dict) for record in records):
            raise ValidationError(INVALID_PARAMS_MESSAGE)
        return records

    @staticmethod
    def _check_fields(model: Type[BaseModel], fields: Dict[str, Any]) -> None:
        """Os campos recebidos precisam continuar válidos para o modelo lido pelo analytics."""
        try:
            model.model_validate(fields)
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationError(f"{INVALID_PARAMS_MESSAGE}: {location}: {first['msg']}") from e

    async def _sync_produtos(self, records: List[Dict[str, Any]]) -> int:
        for record in records:
            if not record.get("name"):
                raise ValidationError(INVALID_PARAMS_MESSAGE)
            self._check_fields(Produto, record)
        for record in records:
            await self.store.upsert(self.produtos_collection, {"name": record["name"]}, record)
        return len(records)

    async def _sync_pedidos(self, records: List[Dict[str, Any]]) -> int:
        for record in records:
            if not record.get("id"):
                raise ValidationError(INVALID_PARAMS_MESSAGE)
            self._check_fields(Pedido, {key: value for key, value in record.items() if key != "id"})
        for record in records:
            fields = {key: value for key, value in record.items() if key != "id"}
            if not fields:
                continue
            result = await self.pedido_repo.update(str(record["id"]), fields)
            if result is None:
                raise NotFoundOrUnsupportedError(f"Pedido não encontrado: {record['id']}")
        return len(records)

    async def sync(self, entity: Any, data: Any) -> ErpSyncResponse:
        log = logger.bind(trace_id=trace_id_var.get(), service="ErpSyncService", entity=entity)
        if not entity or not data:
            log.warning("Sync ERP sem entity ou data.")
            raise ValidationError(INVALID_PARAMS_MESSAGE)

        handlers = {"produtos": self._sync_produtos, "pedidos": self._sync_pedidos}
        handler = handlers.get(entity) if isinstance(entity, str) else None
        if handler is None:
            log.warning(f"Entidade desconhecida no sync ERP: {entity}")
            raise NotFoundOrUnsupportedError(UNKNOWN_ENTITY_MESSAGE)

        records = self._as_records(data)
        log.info(f"Sincronizando {len(records)} registro(s) do ERP...")
        try:
            synced = await handler(records)
        except (ValidationError, NotFoundOrUnsupportedError):
            raise
        except Exception as e:
            log.exception(f"Erro na integração ERP: {e}")
            raise UpstreamError(ERP_ERROR_MESSAGE) from e

        log.success(f"Sync ERP concluído: {synced} registro(s).")
        return ErpSyncResponse(message=SYNC_SUCCESS_MESSAGE, entity=entity, synced=synced)
