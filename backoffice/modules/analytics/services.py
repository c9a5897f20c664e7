# backoffice/modules/analytics/services.py

from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from fastapi import Depends
from loguru import logger
from pydantic import BaseModel, ValidationError

from backoffice.core.context import AppContext, get_context
from backoffice.core.document_store import DocumentStore
from backoffice.models.analytics import BusinessMetrics, ProductProfitability, ProductSales, Produto
from backoffice.models.pedidos import Pedido, PedidoStatus

TOP_PRODUCTS_LIMIT = 5

ModelT = TypeVar("ModelT", bound=BaseModel)


def _find_produto(produtos: Sequence[Produto], name: str) -> Optional[Produto]:
    # Primeiro produto com o nome vence
    return next((produto for produto in produtos if produto.name == name), None)


def calculate_business_metrics(pedidos: Sequence[Pedido], produtos: Sequence[Produto]) -> BusinessMetrics:
    """
    Métricas de negócio sobre os pedidos entregues.

    - topProducts: até 5 produtos por quantidade somada; empates mantêm a ordem
      de primeira ocorrência. Conta também produtos fora do cadastro.
    - profitMargin: (vendas - custo) / vendas * 100. Produto desconhecido tem custo 0.
    """
    entregues = [pedido for pedido in pedidos if pedido.status == PedidoStatus.ENTREGUE.value]
    total_sales = sum(pedido.total or 0 for pedido in entregues)
    total_orders = len(entregues)
    average_order_value = total_sales / total_orders if total_orders > 0 else 0

    product_sales: Dict[str, int] = {}
    total_cost = 0.0
    for pedido in entregues:
        for item in pedido.items:
            product_sales[item.product_name] = product_sales.get(item.product_name, 0) + item.quantity
            produto = _find_produto(produtos, item.product_name)
            if produto:
                total_cost += produto.cost * item.quantity

    # sorted é estável: empates preservam a ordem de inserção do dict
    ranking = sorted(product_sales.items(), key=lambda entry: entry[1], reverse=True)
    top_products = [ProductSales(name=name, sales=sales) for name, sales in ranking[:TOP_PRODUCTS_LIMIT]]

    profit_margin = (total_sales - total_cost) / total_sales * 100 if total_sales > 0 else 0

    return BusinessMetrics(
        total_sales=total_sales,
        total_orders=total_orders,
        average_order_value=average_order_value,
        top_products=top_products,
        monthly_revenue=total_sales,
        profit_margin=profit_margin,
    )


def analyze_profitability(pedidos: Sequence[Pedido], produtos: Sequence[Produto]) -> List[ProductProfitability]:
    """Lucratividade por produto sobre todos os pedidos, sem filtro de status. Itens sem produto cadastrado são ignorados."""
    totals: Dict[str, Dict[str, float]] = {}
    for pedido in pedidos:
        for item in pedido.items:
            produto = _find_produto(produtos, item.product_name)
            if produto is None:
                continue
            entry = totals.setdefault(item.product_name, {"revenue": 0.0, "cost": 0.0})
            entry["revenue"] += item.total_price or 0
            entry["cost"] += produto.cost * item.quantity

    result = []
    for name, entry in totals.items():
        profit = entry["revenue"] - entry["cost"]
        result.append(
            ProductProfitability(
                name=name,
                revenue=entry["revenue"],
                cost=entry["cost"],
                profit=profit,
                profit_margin=profit / entry["revenue"] * 100 if entry["revenue"] > 0 else 0,
            )
        )
    return sorted(result, key=lambda row: row.profit, reverse=True)


class AnalyticsService:
    """Carrega pedidos e produtos do document store e aplica as funções de análise."""

    def __init__(self, store: DocumentStore, pedidos_collection: str, produtos_collection: str):
        self.store = store
        self.pedidos_collection = pedidos_collection
        self.produtos_collection = produtos_collection

    @staticmethod
    def _parse(model: Type[ModelT], data: Dict[str, Any], doc_id: str) -> Optional[ModelT]:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Analytics: documento {doc_id} ignorado, {model.__name__} inválido: {e.errors()[0]['msg']}")
            return None

    async def _load(self):
        pedido_snaps = await self.store.find(self.pedidos_collection)
        produto_snaps = await self.store.find(self.produtos_collection)
        pedidos = [self._parse(Pedido, {**snap.data, "id": snap.id}, snap.id) for snap in pedido_snaps]
        produtos = [self._parse(Produto, snap.data, snap.id) for snap in produto_snaps]
        pedidos = [pedido for pedido in pedidos if pedido is not None]
        produtos = [produto for produto in produtos if produto is not None]
        logger.debug(f"Analytics: {len(pedidos)} pedidos e {len(produtos)} produtos carregados")
        return pedidos, produtos

    async def get_business_metrics(self) -> BusinessMetrics:
        pedidos, produtos = await self._load()
        return calculate_business_metrics(pedidos, produtos)

    async def get_profitability(self) -> List[ProductProfitability]:
        pedidos, produtos = await self._load()
        return analyze_profitability(pedidos, produtos)


def get_analytics_service(context: AppContext = Depends(get_context)) -> AnalyticsService:
    settings = context.settings
    return AnalyticsService(context.store, settings.PEDIDOS_COLLECTION, settings.PRODUTOS_COLLECTION)
