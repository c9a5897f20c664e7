# backoffice/models/analytics.py

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Produto(CamelModel):
    """Produto de referência (somente leitura). `name` é a chave de junção com os itens."""

    name: str
    cost: float = Field(0.0, ge=0)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class ProductSales(CamelModel):
    name: str
    sales: int


class BusinessMetrics(CamelModel):
    total_sales: float = 0.0
    total_orders: int = 0
    average_order_value: float = 0.0
    top_products: List[ProductSales] = Field(default_factory=list)
    monthly_revenue: float = 0.0
    profit_margin: float = 0.0


class ProductProfitability(CamelModel):
    name: str
    revenue: float
    cost: float
    profit: float
    profit_margin: float
