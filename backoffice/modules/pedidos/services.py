# backoffice/modules/pedidos/services.py

from typing import Optional

from fastapi import Depends
from loguru import logger

from backoffice.core.exceptions import INTERNAL_ERROR_MESSAGE, UpstreamError
from backoffice.models.audit import AuditLogEntry
from backoffice.models.pedidos import PedidoCreate
from backoffice.modules.audit.repository import AuditLogRepository, get_audit_repository
from .repository import PedidoRepository, get_pedido_repository


class PedidoService:
    """Recebimento de pedidos: grava o pedido e registra a auditoria de criação."""

    def __init__(self, pedido_repo: PedidoRepository, audit_repo: AuditLogRepository):
        self.pedido_repo = pedido_repo
        self.audit_repo = audit_repo

    async def create_pedido(self, pedido_in: PedidoCreate, user_id: Optional[str] = None) -> str:
        """
        Grava o pedido (createdAt/updatedAt pelo relógio do servidor) e depois a
        entrada `create_pedido`. As duas escritas são independentes: se a
        auditoria falhar o pedido já gravado permanece.
        """
        log = logger.bind(user_id=user_id, items=len(pedido_in.items), service="PedidoService")
        log.info("Service: criando pedido...")
        try:
            created = await self.pedido_repo.create(pedido_in.to_document())
            log = log.bind(pedido_id=created.id)
            await self.audit_repo.append(AuditLogEntry.for_create(created.id, details=created.data, user_id=user_id))
        except Exception as e:
            log.exception(f"Erro ao criar pedido: {e}")
            raise UpstreamError(INTERNAL_ERROR_MESSAGE) from e

        log.success("Pedido criado.")
        return created.id


def get_pedido_service(
    pedido_repo: PedidoRepository = Depends(get_pedido_repository),
    audit_repo: AuditLogRepository = Depends(get_audit_repository),
) -> PedidoService:
    return PedidoService(pedido_repo, audit_repo)
