# backoffice/modules/pedidos/repository.py

from typing import Any, Dict, Optional, Tuple

from fastapi import Depends

from backoffice.core.context import AppContext, get_context
from backoffice.core.document_store import SERVER_TIMESTAMP, DocumentStore, DocumentSnapshot


class PedidoRepository:
    def __init__(self, store: DocumentStore, collection_name: str):
        self.store = store
        self.collection_name = collection_name

    async def create(self, document: Dict[str, Any]) -> DocumentSnapshot:
        data = dict(document)
        data["createdAt"] = SERVER_TIMESTAMP
        data["updatedAt"] = SERVER_TIMESTAMP
        return await self.store.add(self.collection_name, data)

    async def update(
        self, pedido_id: str, fields: Dict[str, Any]
    ) -> Optional[Tuple[Dict[str, Any], Dict[str, Any]]]:
        # updatedAt sempre re-carimbado pelo relógio do servidor
        data = {key: value for key, value in fields.items() if key not in ("createdAt", "updatedAt")}
        data["updatedAt"] = SERVER_TIMESTAMP
        return await self.store.update(self.collection_name, pedido_id, data)

    async def delete(self, pedido_id: str) -> Optional[DocumentSnapshot]:
        return await self.store.delete(self.collection_name, pedido_id)


def get_pedido_repository(context: AppContext = Depends(get_context)) -> PedidoRepository:
    return PedidoRepository(context.store, context.settings.PEDIDOS_COLLECTION)
