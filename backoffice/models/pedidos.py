# backoffice/models/pedidos.py

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class PedidoStatus(str, Enum):
    CRIADO = "criado"
    ENTREGUE = "entregue"


class PedidoItem(BaseModel):
    """Item de pedido. O produto é referenciado pelo nome, não por id."""

    product_name: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    unit_price: Optional[float] = Field(None, ge=0)
    total_price: Optional[float] = Field(None, ge=0)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    @model_validator(mode="after")
    def fill_total_price(self):
        if self.total_price is None:
            self.total_price = (self.unit_price or 0) * self.quantity
        return self


class PedidoBase(BaseModel):
    items: List[PedidoItem] = Field(default_factory=list)
    status: str = PedidoStatus.CRIADO.value
    total: Optional[float] = Field(None, ge=0)

    # Campos extras do payload são preservados como vieram
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    @model_validator(mode="after")
    def fill_total(self):
        if self.total is None:
            self.total = sum(item.total_price or 0 for item in self.items)
        return self


class PedidoCreate(PedidoBase):
    """Payload de criação. Um pedido sem itens nunca é aceito."""

    items: List[PedidoItem] = Field(..., min_length=1)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class Pedido(PedidoBase):
    """Pedido como gravado no document store."""

    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PedidoCreatedResponse(BaseModel):
    id: str
