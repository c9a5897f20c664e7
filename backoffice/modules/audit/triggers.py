# backoffice/modules/audit/triggers.py

from loguru import logger

from backoffice.core.document_store import DocumentStore, MutationEvent
from backoffice.models.audit import AuditLogEntry
from .repository import AuditLogRepository


def build_pedido_update_trigger(audit_repo: AuditLogRepository):
    async def log_pedido_update(event: MutationEvent) -> None:
        await audit_repo.append(
            AuditLogEntry.for_update(event.document_id, before=event.before, after=event.after)
        )

    return log_pedido_update


def build_pedido_delete_trigger(audit_repo: AuditLogRepository):
    async def log_pedido_delete(event: MutationEvent) -> None:
        await audit_repo.append(AuditLogEntry.for_delete(event.document_id, deleted_data=event.before))

    return log_pedido_delete


def register_audit_triggers(store: DocumentStore, audit_repo: AuditLogRepository, collection: str) -> None:
    """Liga os triggers de auditoria às notificações de update/delete da coleção de pedidos."""
    store.on_update(collection, build_pedido_update_trigger(audit_repo))
    store.on_delete(collection, build_pedido_delete_trigger(audit_repo))
    logger.info(f"Audit triggers registrados para a coleção '{collection}'")
