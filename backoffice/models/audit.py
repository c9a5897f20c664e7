# backoffice/models/audit.py

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

UNKNOWN_USER = "unknown"


class AuditAction(str, Enum):
    CREATE = "create_pedido"
    UPDATE = "update_pedido"
    DELETE = "delete_pedido"


class AuditLogEntry(BaseModel):
    """Entrada do log de auditoria. Imutável depois de gravada."""

    id: Optional[str] = None
    action: AuditAction
    pedido_id: str
    user_id: Optional[str] = None
    timestamp: Optional[datetime] = None
    details: Optional[Dict[str, Any]] = None  # create: pedido completo
    before: Optional[Dict[str, Any]] = None  # update
    after: Optional[Dict[str, Any]] = None  # update
    deleted_data: Optional[Dict[str, Any]] = None  # delete

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    @classmethod
    def for_create(cls, pedido_id: str, details: Dict[str, Any], user_id: Optional[str] = None) -> "AuditLogEntry":
        return cls(action=AuditAction.CREATE, pedido_id=pedido_id, user_id=user_id or UNKNOWN_USER, details=details)

    @classmethod
    def for_update(cls, pedido_id: str, before: Dict[str, Any], after: Dict[str, Any]) -> "AuditLogEntry":
        return cls(action=AuditAction.UPDATE, pedido_id=pedido_id, before=before, after=after)

    @classmethod
    def for_delete(cls, pedido_id: str, deleted_data: Dict[str, Any]) -> "AuditLogEntry":
        return cls(action=AuditAction.DELETE, pedido_id=pedido_id, deleted_data=deleted_data)
