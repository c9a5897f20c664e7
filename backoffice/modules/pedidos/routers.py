# backoffice/modules/pedidos/routers.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, status
from loguru import logger

from backoffice.models.audit import AuditLogEntry
from backoffice.models.pedidos import PedidoCreate, PedidoCreatedResponse
from backoffice.modules.audit.repository import AuditLogRepository, get_audit_repository
from .services import PedidoService, get_pedido_service
from .validation import pedido_request_body, validate_pedido

pedidos_router = APIRouter()


@pedidos_router.post(
    "/pedidos",
    response_model=PedidoCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Registra um novo pedido",
    tags=["Pedidos"],
    openapi_extra={"requestBody": pedido_request_body()},
)
async def create_pedido_endpoint(
    pedido_in: PedidoCreate = Depends(validate_pedido),
    x_user_id: Optional[str] = Header(None),
    pedido_service: PedidoService = Depends(get_pedido_service),
):
    logger.bind(user_id=x_user_id).info("Endpoint: recebendo novo pedido...")
    pedido_id = await pedido_service.create_pedido(pedido_in, user_id=x_user_id)
    return PedidoCreatedResponse(id=pedido_id)


@pedidos_router.get(
    "/pedidos/{pedido_id}/auditoria",
    response_model=List[AuditLogEntry],
    response_model_by_alias=True,
    response_model_exclude_none=True,
    summary="Lista o histórico de auditoria de um pedido",
    tags=["Pedidos"],
)
async def list_pedido_audit_endpoint(
    pedido_id: str,
    audit_repo: AuditLogRepository = Depends(get_audit_repository),
):
    return await audit_repo.list_for_pedido(pedido_id)
