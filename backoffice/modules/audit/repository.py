# backoffice/modules/audit/repository.py

from typing import List

from fastapi import Depends
from loguru import logger

from backoffice.core.context import AppContext, get_context
from backoffice.core.document_store import SERVER_TIMESTAMP, DocumentStore, DocumentSnapshot
from backoffice.models.audit import AuditLogEntry


class AuditLogRepository:
    """
    Log de auditoria append-only. Não existe operação de alteração ou remoção
    de entradas: apenas `append` e leitura.
    """

    def __init__(self, store: DocumentStore, collection_name: str):
        self.store = store
        self.collection_name = collection_name

    async def append(self, entry: AuditLogEntry) -> DocumentSnapshot:
        data = entry.model_dump(by_alias=True, exclude_none=True, exclude={"id", "timestamp"})
        data["action"] = entry.action.value
        data["timestamp"] = SERVER_TIMESTAMP
        snapshot = await self.store.add(self.collection_name, data)
        logger.bind(pedido_id=entry.pedido_id).info(f"Audit entry '{entry.action.value}' gravada: {snapshot.id}")
        return snapshot

    async def list_for_pedido(self, pedido_id: str) -> List[AuditLogEntry]:
        snapshots = await self.store.find(self.collection_name, {"pedidoId": pedido_id})
        return [AuditLogEntry.model_validate({**snap.data, "id": snap.id}) for snap in snapshots]


def get_audit_repository(context: AppContext = Depends(get_context)) -> AuditLogRepository:
    return AuditLogRepository(context.store, context.settings.AUDIT_COLLECTION)
